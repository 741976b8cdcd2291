"""Default tool catalog: demo tools, scheduling tools and Klaviyo tools."""

from typing import Tuple

from .builtin_tools import basic
from .builtin_tools.scheduling import SCHEDULING_TOOLS
from .integrations.klaviyo import tools as klaviyo_tools
from .tools.registry import ExecutorTable, ToolRegistry


def default_tools() -> Tuple[ToolRegistry, ExecutorTable]:
    """Build a fresh registry and confirmed-executor table with every built-in tool."""
    registry = ToolRegistry([
        basic.get_weather_information,
        basic.get_local_time,
        *SCHEDULING_TOOLS,
        *klaviyo_tools.KLAVIYO_TOOLS,
    ])

    executions = ExecutorTable()
    executions.update(basic.executions)
    executions.update(klaviyo_tools.executions)
    return registry, executions
