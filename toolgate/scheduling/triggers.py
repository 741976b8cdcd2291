"""Next-trigger computation - one handler per schedule kind."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Optional

from croniter import croniter

from ..errors import InvalidCronError, PastTimestampError
from .models import PastDuePolicy, ScheduleDescriptor, ScheduleKind

logger = logging.getLogger(__name__)


class TriggerHandler(ABC):
    """Validates a descriptor's trigger and computes its fire times."""

    kind: ScheduleKind

    def check(self, descriptor: ScheduleDescriptor, now: datetime, policy: PastDuePolicy) -> None:
        """Reject triggers that cannot be armed. Default accepts everything."""

    @abstractmethod
    def first_fire_at(self, descriptor: ScheduleDescriptor, now: datetime) -> datetime:
        """Fire time when the descriptor is first armed."""

    def next_fire_after(self, descriptor: ScheduleDescriptor, now: datetime) -> Optional[datetime]:
        """Fire time after a firing completed, or None to retire the descriptor."""
        return None


class OneShotTrigger(TriggerHandler):
    kind = ScheduleKind.ONE_SHOT

    def check(self, descriptor: ScheduleDescriptor, now: datetime, policy: PastDuePolicy) -> None:
        if descriptor.at <= now and policy == PastDuePolicy.REJECT:
            raise PastTimestampError(descriptor.at.isoformat())

    def first_fire_at(self, descriptor: ScheduleDescriptor, now: datetime) -> datetime:
        # Past-due under FIRE_IMMEDIATELY: due on the next wake
        return max(descriptor.at, now)


class DelayedTrigger(TriggerHandler):
    kind = ScheduleKind.DELAYED

    def first_fire_at(self, descriptor: ScheduleDescriptor, now: datetime) -> datetime:
        return descriptor.created_at + timedelta(seconds=descriptor.delay_seconds)


class CronTrigger(TriggerHandler):
    kind = ScheduleKind.RECURRING_CRON

    def check(self, descriptor: ScheduleDescriptor, now: datetime, policy: PastDuePolicy) -> None:
        if not croniter.is_valid(descriptor.cron):
            raise InvalidCronError(descriptor.cron)

    def first_fire_at(self, descriptor: ScheduleDescriptor, now: datetime) -> datetime:
        return next_cron_time(descriptor.cron, now)

    def next_fire_after(self, descriptor: ScheduleDescriptor, now: datetime) -> Optional[datetime]:
        # Always relative to now: missed occurrences are not backfilled
        return next_cron_time(descriptor.cron, now)


def next_cron_time(expr: str, now: datetime) -> datetime:
    """Next occurrence of *expr* strictly after *now*."""
    try:
        next_dt = croniter(expr, now).get_next(datetime)
    except (ValueError, KeyError) as e:
        raise InvalidCronError(expr, str(e)) from e

    # Guard: if croniter returned same or past time, retry from the next second
    if next_dt <= now:
        retry_from = now.replace(microsecond=0) + timedelta(seconds=1)
        next_dt = croniter(expr, retry_from).get_next(datetime)
    return next_dt


TRIGGER_HANDLERS: Dict[ScheduleKind, TriggerHandler] = {
    handler.kind: handler
    for handler in (OneShotTrigger(), DelayedTrigger(), CronTrigger())
}


def handler_for(kind: ScheduleKind) -> TriggerHandler:
    return TRIGGER_HANDLERS[kind]
