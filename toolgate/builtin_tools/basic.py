"""Basic demo tools: one that runs automatically, one that needs approval."""

import logging
from typing import Annotated

from ..tools.decorator import tool
from ..tools.models import ToolContext
from ..tools.registry import ExecutorTable

logger = logging.getLogger(__name__)

executions = ExecutorTable()


@tool(name="getLocalTime")
async def get_local_time(
    location: Annotated[str, "City or region to get the time for"],
    *, context: ToolContext,
) -> str:
    """get the local time for a specified location"""
    logger.info(f"Getting local time for {location}")
    return "10am"


@executions.tool(name="getWeatherInformation")
async def get_weather_information(
    city: Annotated[str, "City to show the weather for"],
    *, context: ToolContext,
) -> str:
    """show the weather in a given city to the user"""
    logger.info(f"Getting weather information for {city}")
    return f"The weather in {city} is sunny"
