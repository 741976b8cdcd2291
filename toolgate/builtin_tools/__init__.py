"""Built-in tools available to every session."""

from .basic import executions, get_local_time, get_weather_information
from .scheduling import (
    SCHEDULING_TOOLS,
    cancel_scheduled_task,
    get_scheduled_tasks,
    schedule_task,
)

__all__ = [
    "SCHEDULING_TOOLS",
    "cancel_scheduled_task",
    "executions",
    "get_local_time",
    "get_scheduled_tasks",
    "get_weather_information",
    "schedule_task",
]
