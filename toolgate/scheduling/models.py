"""Schedule descriptor data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser

from ..errors import InvalidTriggerError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return _ensure_aware(date_parser.isoparse(value))


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Kinds and policies
# ---------------------------------------------------------------------------


class ScheduleKind(str, Enum):
    ONE_SHOT = "one_shot"
    DELAYED = "delayed"
    RECURRING_CRON = "recurring_cron"


class PastDuePolicy(str, Enum):
    """What to do with an absolute trigger that has already elapsed."""
    REJECT = "reject"
    FIRE_IMMEDIATELY = "fire_immediately"


# Trigger field populated for each kind
TRIGGER_FIELDS: Dict[ScheduleKind, str] = {
    ScheduleKind.ONE_SHOT: "at",
    ScheduleKind.DELAYED: "delay_seconds",
    ScheduleKind.RECURRING_CRON: "cron",
}

# Model-facing request "type" -> kind
REQUEST_TYPES: Dict[str, ScheduleKind] = {
    "scheduled": ScheduleKind.ONE_SHOT,
    "delayed": ScheduleKind.DELAYED,
    "cron": ScheduleKind.RECURRING_CRON,
}

NO_SCHEDULE = "no-schedule"

Trigger = Union[datetime, int, str]


# ---------------------------------------------------------------------------
# ScheduleDescriptor
# ---------------------------------------------------------------------------


@dataclass
class ScheduleDescriptor:
    """A durable record of when to invoke which session action.

    Exactly one of ``at`` / ``delay_seconds`` / ``cron`` is populated and it
    must match ``kind``; anything else fails at construction.
    """
    kind: ScheduleKind
    action_name: str
    payload: str = ""
    at: Optional[datetime] = None
    delay_seconds: Optional[int] = None
    cron: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=utcnow)
    next_fire_at: Optional[datetime] = None
    running_since: Optional[datetime] = None
    last_fired_at: Optional[datetime] = None
    fire_count: int = 0

    def __post_init__(self) -> None:
        self.kind = ScheduleKind(self.kind)
        populated = {
            name for name in ("at", "delay_seconds", "cron")
            if getattr(self, name) is not None
        }
        expected = TRIGGER_FIELDS[self.kind]
        if populated != {expected}:
            raise InvalidTriggerError(
                f"{self.kind.value} schedule needs exactly '{expected}', got {sorted(populated) or 'none'}"
            )

        value = getattr(self, expected)
        if self.kind == ScheduleKind.ONE_SHOT:
            if not isinstance(value, datetime):
                raise InvalidTriggerError(f"one_shot trigger must be a datetime, got {value!r}")
            self.at = _ensure_aware(value)
        elif self.kind == ScheduleKind.DELAYED:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidTriggerError(f"delayed trigger must be whole seconds, got {value!r}")
            if value < 0:
                raise InvalidTriggerError(f"delay must not be negative, got {value}")
        elif not isinstance(value, str) or not value.strip():
            raise InvalidTriggerError(f"cron trigger must be a cron expression, got {value!r}")

        self.created_at = _ensure_aware(self.created_at)

    @property
    def trigger(self) -> Trigger:
        return getattr(self, TRIGGER_FIELDS[self.kind])

    @classmethod
    def build(
        cls,
        kind: Union[ScheduleKind, str],
        trigger: Any,
        action_name: str,
        payload: str = "",
        **kwargs: Any,
    ) -> "ScheduleDescriptor":
        """Construct a descriptor, placing *trigger* in the field *kind* uses."""
        kind = ScheduleKind(kind)
        return cls(kind=kind, action_name=action_name, payload=payload,
                   **{TRIGGER_FIELDS[kind]: trigger}, **kwargs)

    @classmethod
    def from_request(
        cls,
        request_type: str,
        when: Any,
        payload: str,
        action_name: str,
        **kwargs: Any,
    ) -> "ScheduleDescriptor":
        """Build from the model-facing ``{type, when, payload}`` shape."""
        kind = REQUEST_TYPES.get(request_type)
        if kind is None:
            raise InvalidTriggerError(f"Unknown schedule type: {request_type!r}")
        if kind == ScheduleKind.ONE_SHOT and isinstance(when, str):
            try:
                when = date_parser.isoparse(when)
            except ValueError as e:
                raise InvalidTriggerError(f"Invalid ISO date {when!r}: {e}") from e
        return cls.build(kind, when, action_name=action_name, payload=payload, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "actionName": self.action_name,
            "payload": self.payload,
            "createdAt": _format_dt(self.created_at),
            "fireCount": self.fire_count,
        }
        if self.at is not None:
            d["at"] = _format_dt(self.at)
        if self.delay_seconds is not None:
            d["delaySeconds"] = self.delay_seconds
        if self.cron is not None:
            d["cron"] = self.cron
        if self.next_fire_at is not None:
            d["nextFireAt"] = _format_dt(self.next_fire_at)
        if self.running_since is not None:
            d["runningSince"] = _format_dt(self.running_since)
        if self.last_fired_at is not None:
            d["lastFiredAt"] = _format_dt(self.last_fired_at)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScheduleDescriptor":
        return cls(
            id=d["id"],
            kind=ScheduleKind(d["kind"]),
            action_name=d.get("actionName", d.get("action_name", "")),
            payload=d.get("payload", ""),
            at=_parse_dt(d.get("at")),
            delay_seconds=d.get("delaySeconds", d.get("delay_seconds")),
            cron=d.get("cron"),
            created_at=_parse_dt(d.get("createdAt")) or utcnow(),
            next_fire_at=_parse_dt(d.get("nextFireAt")),
            running_since=_parse_dt(d.get("runningSince")),
            last_fired_at=_parse_dt(d.get("lastFiredAt")),
            fire_count=d.get("fireCount", 0),
        )


# ---------------------------------------------------------------------------
# Fire record
# ---------------------------------------------------------------------------


@dataclass
class FireRecord:
    """Outcome of one firing."""
    schedule_id: str
    action_name: str
    fired_at: datetime
    status: str = "ok"  # "ok" | "error"
    error: Optional[str] = None
    next_fire_at: Optional[datetime] = None
    removed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "scheduleId": self.schedule_id,
            "actionName": self.action_name,
            "firedAt": _format_dt(self.fired_at),
            "status": self.status,
            "removed": self.removed,
        }
        if self.error is not None:
            d["error"] = self.error
        if self.next_fire_at is not None:
            d["nextFireAt"] = _format_dt(self.next_fire_at)
        return d
