"""ScheduleStore - session-owned, serialised collection of schedule descriptors."""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Set

from ..errors import InvalidTriggerError, UnknownScheduleError
from ..storage import JsonFileStore
from .models import ScheduleDescriptor

logger = logging.getLogger(__name__)


class ScheduleStore(JsonFileStore):
    """Pending schedule descriptors, kept in creation order.

    Every mutation (add, remove, claim, complete) runs under one
    ``asyncio.Lock`` so cancel and fire on the same descriptor are
    ordered: whichever takes the lock first decides the outcome.
    """

    records_key = "schedules"

    def __init__(self, store_path: Optional[str] = None):
        super().__init__(store_path)
        self._schedules: Dict[str, ScheduleDescriptor] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Load descriptors from disk. Creates an empty store if the file doesn't exist."""
        loaded: Dict[str, ScheduleDescriptor] = {}
        for record in self._read_records():
            try:
                descriptor = ScheduleDescriptor.from_dict(record)
            except (KeyError, TypeError, ValueError, InvalidTriggerError) as e:
                logger.warning(f"Skipping invalid schedule entry: {e}")
                continue
            if descriptor.running_since is not None:
                # Firing was interrupted by a restart
                logger.warning(f"Clearing stale running marker on schedule {descriptor.id}")
                descriptor.running_since = None
            loaded[descriptor.id] = descriptor

        ordered = sorted(loaded.values(), key=lambda d: d.created_at)
        async with self._lock:
            self._schedules = {d.id: d for d in ordered}
        if self.store_path is not None:
            logger.info(f"Loaded {len(self._schedules)} schedules from {self.store_path}")

    async def save(self) -> None:
        async with self._lock:
            self._persist()

    def _persist(self) -> None:
        self._write_records([d.to_dict() for d in self._schedules.values()])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, schedule_id: str) -> Optional[ScheduleDescriptor]:
        return self._schedules.get(schedule_id)

    def list(self) -> List[ScheduleDescriptor]:
        """All descriptors in creation order."""
        return list(self._schedules.values())

    def get_next_due_time(self) -> Optional[datetime]:
        """Earliest next_fire_at across descriptors that are not firing."""
        times = [
            d.next_fire_at for d in self._schedules.values()
            if d.running_since is None and d.next_fire_at is not None
        ]
        return min(times) if times else None

    def __len__(self) -> int:
        return len(self._schedules)

    def __contains__(self, schedule_id: str) -> bool:
        return schedule_id in self._schedules

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add(self, descriptor: ScheduleDescriptor) -> None:
        async with self._lock:
            self._schedules[descriptor.id] = descriptor
            self._persist()

    async def remove(self, schedule_id: str) -> ScheduleDescriptor:
        """Remove a descriptor. An in-flight firing finishes but is not re-armed.

        Raises:
            UnknownScheduleError: no such id (never existed or already removed)
        """
        async with self._lock:
            descriptor = self._schedules.pop(schedule_id, None)
            if descriptor is None:
                raise UnknownScheduleError(schedule_id)
            self._persist()
        return descriptor

    async def claim_next(
        self,
        now: datetime,
        skip: Optional[Set[str]] = None,
    ) -> Optional[ScheduleDescriptor]:
        """Mark the earliest-created due, idle descriptor as firing and return it.

        Descriptors whose id is in *skip* are passed over. A descriptor
        removed before this call is never returned.
        """
        async with self._lock:
            for d in self._schedules.values():
                if skip and d.id in skip:
                    continue
                if d.running_since is None and d.next_fire_at is not None and d.next_fire_at <= now:
                    d.running_since = now
                    self._persist()
                    return d
        return None

    async def complete(
        self,
        descriptor: ScheduleDescriptor,
        fired_at: datetime,
        next_fire_at: Optional[datetime],
    ) -> bool:
        """Record a finished firing.

        Returns:
            True if the descriptor was re-armed, False if it was retired
            (one-shot/delayed, or cancelled while firing).
        """
        async with self._lock:
            descriptor.running_since = None
            descriptor.last_fired_at = fired_at
            descriptor.fire_count += 1

            if descriptor.id not in self._schedules:
                return False
            if next_fire_at is None:
                del self._schedules[descriptor.id]
                self._persist()
                return False

            descriptor.next_fire_at = next_fire_at
            self._persist()
            return True
