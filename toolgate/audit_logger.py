"""
Structured audit logging for tool and scheduling decisions.

Produces JSON log entries via Python's standard logging module under
the ``toolgate.audit`` logger name. Each entry includes a timestamp,
event_type, optional session_id, and event-specific fields.

Usage::

    audit = AuditLogger(session_id="chat-42")
    audit.log_confirmation_decision(
        call_id="call_1",
        tool_name="sendKlaviyoCampaign",
        decision="approved",
    )
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_audit_logger = logging.getLogger("toolgate.audit")


class AuditLogger:
    """Structured audit logger for gate and dispatcher decisions."""

    def __init__(self, session_id: Optional[str] = None) -> None:
        self._session_id = session_id or ""

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _emit(self, event_type: str, fields: Dict[str, Any]) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "session_id": self._session_id,
        }
        entry.update(fields)
        _audit_logger.info(json.dumps(entry, default=str))

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def log_tool_execution(
        self,
        call_id: str,
        tool_name: str,
        path: str,
        success: bool,
        duration_ms: int,
        error: Optional[str] = None,
    ) -> None:
        """Log a tool execution result (path is "auto" or "confirmed")."""
        fields: Dict[str, Any] = {
            "call_id": call_id,
            "tool_name": tool_name,
            "path": path,
            "success": success,
            "duration_ms": duration_ms,
        }
        if error is not None:
            fields["error"] = error
        self._emit("tool_execution", fields)

    def log_validation_failure(self, call_id: str, tool_name: str, error: str) -> None:
        self._emit("validation_failure", {
            "call_id": call_id,
            "tool_name": tool_name,
            "error": error,
        })

    def log_confirmation_requested(
        self,
        call_id: str,
        tool_name: str,
        arg_keys: list,
    ) -> None:
        """Log a tool call parked for human approval."""
        self._emit("confirmation_requested", {
            "call_id": call_id,
            "tool_name": tool_name,
            "arg_keys": arg_keys,
        })

    def log_confirmation_decision(
        self,
        call_id: str,
        tool_name: str,
        decision: str,
    ) -> None:
        """Log an approve/deny decision."""
        self._emit("confirmation_decision", {
            "call_id": call_id,
            "tool_name": tool_name,
            "decision": decision,
        })

    def log_schedule_event(
        self,
        schedule_id: str,
        action: str,
        kind: Optional[str] = None,
        next_fire_at: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Log a schedule change ("added" | "cancelled" | "fired" | "removed")."""
        fields: Dict[str, Any] = {"schedule_id": schedule_id, "action": action}
        if kind is not None:
            fields["kind"] = kind
        if next_fire_at is not None:
            fields["next_fire_at"] = next_fire_at
        if error is not None:
            fields["error"] = error
        self._emit("schedule_event", fields)
