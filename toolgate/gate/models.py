"""Confirmation gate data structures."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..tools.models import ToolCall, ToolCallState


@dataclass
class ConfirmationRequest:
    """A parked tool call as shown to the human collaborator."""
    call_id: str
    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    requested_at: float = 0.0

    @classmethod
    def from_call(cls, call: ToolCall) -> "ConfirmationRequest":
        return cls(
            call_id=call.id,
            tool_name=call.name,
            arguments=dict(call.arguments),
            requested_at=call.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "callId": self.call_id,
            "toolName": self.tool_name,
            "arguments": self.arguments,
            "requestedAt": self.requested_at,
        }


@dataclass
class GateOutcome:
    """What the gate reports back for one tool call.

    Attributes:
        call_id: ID of the tool call
        tool_name: Tool name
        state: State the call ended in for this step
        content: Tool result text (or the pending notice for parked calls)
        is_error: Whether the call failed
        data: Raw executor return value, when there is one
    """
    call_id: str
    tool_name: str
    state: ToolCallState
    content: str
    is_error: bool = False
    data: Optional[Any] = None

    @property
    def awaiting_confirmation(self) -> bool:
        return self.state == ToolCallState.AWAITING_CONFIRMATION
