"""TaskDispatcher - timer-based scheduler that invokes session actions."""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

from ..audit_logger import AuditLogger
from .models import (
    PastDuePolicy,
    FireRecord,
    ScheduleDescriptor,
    ScheduleKind,
    utcnow,
)
from .store import ScheduleStore
from .triggers import handler_for

logger = logging.getLogger(__name__)

# Maximum sleep interval before checking again
MAX_SLEEP_S = 60.0

# Minimum sleep to avoid busy-spin
MIN_SLEEP_S = 0.1

DEFAULT_ACTION = "executeTask"

ActionInvoker = Callable[[str, str], Union[Awaitable[Any], Any]]


class TaskDispatcher:
    """Arms schedule descriptors and invokes their action when due.

    Sleeps until the next descriptor is due (capped at ``max_sleep_s``),
    then fires everything due in creation order. Adding or cancelling a
    descriptor wakes the loop so it recomputes its sleep.
    """

    def __init__(
        self,
        store: ScheduleStore,
        invoke_action: ActionInvoker,
        past_due_policy: PastDuePolicy = PastDuePolicy.REJECT,
        clock: Optional[Callable[[], datetime]] = None,
        audit: Optional[AuditLogger] = None,
        max_sleep_s: float = MAX_SLEEP_S,
    ):
        self._store = store
        self._invoke_action = invoke_action
        self.past_due_policy = PastDuePolicy(past_due_policy)
        self._clock = clock or utcnow
        self._audit = audit if audit is not None else AuditLogger()
        self._max_sleep_s = max_sleep_s
        self._running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._wake = asyncio.Event()

    @property
    def store(self) -> ScheduleStore:
        return self._store

    @property
    def running(self) -> bool:
        return self._running

    def _now(self) -> datetime:
        return self._clock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load persisted descriptors and start the timer loop."""
        if self._running:
            return

        await self._store.load()

        self._running = True
        self._loop_task = asyncio.create_task(self._timer_loop())
        logger.info(f"TaskDispatcher started ({len(self._store)} schedules loaded)")

    async def stop(self) -> None:
        """Stop the timer loop. Pending descriptors stay in the store."""
        self._running = False
        self._wake.set()
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None
        logger.info("TaskDispatcher stopped")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def schedule(self, descriptor: ScheduleDescriptor) -> str:
        """Arm a descriptor and return its id.

        Raises:
            PastTimestampError: one-shot time already elapsed under REJECT
            InvalidCronError: cron expression does not parse
        """
        now = self._now()
        handler = handler_for(descriptor.kind)
        handler.check(descriptor, now, self.past_due_policy)
        descriptor.next_fire_at = handler.first_fire_at(descriptor, now)

        await self._store.add(descriptor)
        self._reschedule()

        self._audit.log_schedule_event(
            descriptor.id, "added",
            kind=descriptor.kind.value,
            next_fire_at=descriptor.next_fire_at.isoformat(),
        )
        logger.info(
            f"Scheduled {descriptor.kind.value} task {descriptor.id} "
            f"-> {descriptor.action_name} at {descriptor.next_fire_at.isoformat()}"
        )
        return descriptor.id

    async def schedule_request(
        self,
        request_type: str,
        when: Any,
        payload: str,
        action_name: str = DEFAULT_ACTION,
    ) -> str:
        """Build a descriptor from ``{type, when, payload}`` and arm it."""
        descriptor = ScheduleDescriptor.from_request(
            request_type, when, payload, action_name, created_at=self._now(),
        )
        return await self.schedule(descriptor)

    def list(self) -> List[ScheduleDescriptor]:
        """Pending descriptors in creation order."""
        return self._store.list()

    def get(self, schedule_id: str) -> Optional[ScheduleDescriptor]:
        return self._store.get(schedule_id)

    async def cancel(self, schedule_id: str) -> ScheduleDescriptor:
        """Remove a pending descriptor so it never fires (again).

        Raises:
            UnknownScheduleError: no such id, including a second cancel
        """
        descriptor = await self._store.remove(schedule_id)
        self._reschedule()
        self._audit.log_schedule_event(schedule_id, "cancelled", kind=descriptor.kind.value)
        if descriptor.running_since is not None:
            logger.info(f"Cancelled schedule {schedule_id} while firing; it will not re-arm")
        else:
            logger.info(f"Cancelled schedule {schedule_id}")
        return descriptor

    async def status(self) -> dict:
        """Return dispatcher status summary."""
        next_due = self._store.get_next_due_time()
        return {
            "running": self._running,
            "total_schedules": len(self._store),
            "past_due_policy": self.past_due_policy.value,
            "next_due_at": next_due.isoformat() if next_due else None,
            "next_due_in_seconds": (
                max(0.0, (next_due - self._now()).total_seconds()) if next_due else None
            ),
        }

    # ------------------------------------------------------------------
    # Firing
    # ------------------------------------------------------------------

    async def fire_due(self, now: Optional[datetime] = None) -> List[FireRecord]:
        """Fire every descriptor due at *now*, one at a time in creation order."""
        now = now or self._now()
        records: List[FireRecord] = []
        fired: Set[str] = set()
        # Descriptors cancelled by an earlier action in this pass are never claimed
        while True:
            descriptor = await self._store.claim_next(now, skip=fired)
            if descriptor is None:
                break
            fired.add(descriptor.id)
            records.append(await self._fire(descriptor, now))

        if records:
            logger.info(f"Fired {len(records)} due schedule(s)")
            self._reschedule()
        return records

    async def _fire(self, descriptor: ScheduleDescriptor, fired_at: datetime) -> FireRecord:
        record = FireRecord(
            schedule_id=descriptor.id,
            action_name=descriptor.action_name,
            fired_at=fired_at,
        )
        try:
            result = self._invoke_action(descriptor.action_name, descriptor.payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            record.status = "error"
            record.error = str(e)
            logger.error(f"Schedule {descriptor.id} action '{descriptor.action_name}' failed: {e}")

        next_fire_at = None
        if descriptor.kind == ScheduleKind.RECURRING_CRON:
            next_fire_at = handler_for(descriptor.kind).next_fire_after(descriptor, self._now())
        rearmed = await self._store.complete(descriptor, fired_at, next_fire_at)

        record.next_fire_at = next_fire_at if rearmed else None
        record.removed = not rearmed
        self._audit.log_schedule_event(
            descriptor.id, "fired",
            kind=descriptor.kind.value,
            next_fire_at=record.next_fire_at.isoformat() if record.next_fire_at else None,
            error=record.error,
        )
        if record.removed:
            self._audit.log_schedule_event(descriptor.id, "removed", kind=descriptor.kind.value)
        return record

    # ------------------------------------------------------------------
    # Timer loop
    # ------------------------------------------------------------------

    async def _timer_loop(self) -> None:
        """Main scheduler loop: sleep until next due descriptor, then fire."""
        while self._running:
            try:
                await self._tick()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Dispatcher tick error: {e}", exc_info=True)
                await asyncio.sleep(1)

    async def _tick(self) -> None:
        """Single timer tick: compute sleep, wait, fire due descriptors."""
        next_due = self._store.get_next_due_time()
        if next_due is not None:
            delay_s = (next_due - self._now()).total_seconds()
            sleep_s = max(MIN_SLEEP_S, min(delay_s, self._max_sleep_s))
        else:
            sleep_s = self._max_sleep_s

        # Sleep, but wake immediately if _wake event is set
        self._wake.clear()
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=sleep_s)
        except asyncio.TimeoutError:
            pass

        if not self._running:
            return

        await self.fire_due()

    def _reschedule(self) -> None:
        """Wake the timer loop to recalculate sleep."""
        self._wake.set()
