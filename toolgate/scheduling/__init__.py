"""
toolgate Scheduling - Durable one-shot, delayed and cron schedules that
invoke named session actions.

Provides:
- ScheduleDescriptor: when to invoke which action with which payload
- ScheduleStore: persisted, lock-serialised descriptor collection
- TaskDispatcher: timer loop that arms, fires and cancels descriptors
"""

from .dispatcher import DEFAULT_ACTION, TaskDispatcher
from .models import (
    NO_SCHEDULE,
    FireRecord,
    PastDuePolicy,
    ScheduleDescriptor,
    ScheduleKind,
)
from .store import ScheduleStore
from .triggers import handler_for, next_cron_time

__all__ = [
    "DEFAULT_ACTION",
    "NO_SCHEDULE",
    "FireRecord",
    "PastDuePolicy",
    "ScheduleDescriptor",
    "ScheduleKind",
    "ScheduleStore",
    "TaskDispatcher",
    "handler_for",
    "next_cron_time",
]
