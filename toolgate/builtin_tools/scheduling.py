"""Scheduling Tools - let the model schedule, list and cancel session tasks.

All three run automatically; they act on the session's TaskDispatcher
carried in the tool context.
"""

import logging
from typing import Annotated, Any, Literal, Optional, Union

from ..errors import LookupMissError, SchedulingError
from ..scheduling.dispatcher import DEFAULT_ACTION
from ..scheduling.models import NO_SCHEDULE
from ..tools.decorator import tool
from ..tools.models import ToolContext

logger = logging.getLogger(__name__)


def _get_dispatcher(context: ToolContext):
    """Get the TaskDispatcher from the session in context."""
    if context.session is None:
        return None
    return context.session.dispatcher


# =============================================================================
# scheduleTask
# =============================================================================

@tool(name="scheduleTask")
async def schedule_task(
    type: Annotated[
        Literal["scheduled", "delayed", "cron", "no-schedule"],
        "scheduled: run once at an ISO date; delayed: run after N seconds; "
        "cron: run on a cron expression; no-schedule: the request has no usable time",
    ],
    payload: Annotated[str, "What the task should do when it runs"],
    when: Annotated[
        Optional[Union[str, int]],
        "ISO 8601 date (scheduled), whole seconds (delayed) or cron expression (cron)",
    ] = None,
    *, context: ToolContext,
) -> str:
    """A tool to schedule a task to be executed at a later time"""
    if type == NO_SCHEDULE:
        return "Not a valid schedule input"

    dispatcher = _get_dispatcher(context)
    if dispatcher is None:
        return "Scheduling is not available."

    try:
        schedule_id = await dispatcher.schedule_request(type, when, payload, DEFAULT_ACTION)
    except SchedulingError as e:
        logger.error(f"Error scheduling task: {e}")
        return f"Error scheduling task: {e}"
    return f'Task scheduled for type "{type}" : {when} (id: {schedule_id})'


# =============================================================================
# getScheduledTasks
# =============================================================================

@tool(name="getScheduledTasks")
async def get_scheduled_tasks(*, context: ToolContext) -> Any:
    """List all tasks that have been scheduled"""
    dispatcher = _get_dispatcher(context)
    if dispatcher is None:
        return "Scheduling is not available."

    tasks = dispatcher.list()
    if not tasks:
        return "No scheduled tasks found."
    return [task.to_dict() for task in tasks]


# =============================================================================
# cancelScheduledTask
# =============================================================================

@tool(name="cancelScheduledTask")
async def cancel_scheduled_task(
    taskId: Annotated[str, "The ID of the task to cancel"],
    *, context: ToolContext,
) -> str:
    """Cancel a scheduled task using its ID"""
    dispatcher = _get_dispatcher(context)
    if dispatcher is None:
        return "Scheduling is not available."

    try:
        await dispatcher.cancel(taskId)
    except LookupMissError as e:
        logger.error(f"Error canceling scheduled task: {e}")
        return f"Error canceling task {taskId}: {e}"
    return f"Task {taskId} has been successfully canceled."


SCHEDULING_TOOLS = [schedule_task, get_scheduled_tasks, cancel_scheduled_task]
