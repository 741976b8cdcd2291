"""
toolgate Tool Models - Data structures for LLM tool calling
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel

if TYPE_CHECKING:
    from ..session import AgentSession


class SideEffectClass(str, Enum):
    """How a tool's side effect is allowed to run."""
    AUTO = "auto"
    REQUIRES_CONFIRMATION = "requires_confirmation"


class ToolCallState(str, Enum):
    """Lifecycle of a single model-issued tool call"""
    PENDING_MODEL = "pending_model"
    AUTO_RUNNING = "auto_running"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    APPROVED = "approved"
    DENIED = "denied"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def terminal_states(cls) -> frozenset:
        """States after which the call's result has been decided."""
        return frozenset({cls.COMPLETED, cls.FAILED, cls.DENIED})


@dataclass
class ToolContext:
    """Context passed to tool executors.

    Carries the owning session explicitly so executors never reach for
    ambient state.
    """

    session: Optional["AgentSession"] = None
    call_id: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


Executor = Callable[[Dict[str, Any], ToolContext], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDefinition:
    """A tool the model may invoke.

    Attributes:
        name: Unique tool name (used in LLM tool_calls).
        description: What this tool does (shown to the LLM).
        input_schema: Pydantic model that validates the tool arguments.
        executor: Async function(args: dict, context: ToolContext) -> result.
            Present only for auto-executable tools; confirmation-required
            tools resolve their implementation from an ExecutorTable.
    """

    name: str
    description: str
    input_schema: Type[BaseModel]
    executor: Optional[Executor] = None

    @property
    def side_effect_class(self) -> SideEffectClass:
        if self.executor is not None:
            return SideEffectClass.AUTO
        return SideEffectClass.REQUIRES_CONFIRMATION

    @property
    def parameters(self) -> Dict[str, Any]:
        """JSON Schema for the tool arguments."""
        schema = self.input_schema.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return schema

    def to_openai_schema(self) -> Dict[str, Any]:
        """Convert to OpenAI function-calling tool schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class ToolCall:
    """
    Represents a tool call from LLM response

    Attributes:
        id: Unique call ID from LLM
        name: Tool name
        arguments: Raw arguments dict (validated copy replaces it once checked)
        state: Current lifecycle state, mutated only by the confirmation gate
        result: Tool output folded back into the conversation
        error: Error message when the call failed
    """
    id: str
    name: str
    arguments: Dict[str, Any]
    state: ToolCallState = ToolCallState.PENDING_MODEL
    result: Optional[str] = None
    error: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def is_terminal(self) -> bool:
        return self.state in ToolCallState.terminal_states()

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "arguments": self.arguments,
            "state": self.state.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.result is not None:
            d["result"] = self.result
        if self.error is not None:
            d["error"] = self.error
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ToolCall":
        return cls(
            id=d["id"],
            name=d["name"],
            arguments=d.get("arguments", {}),
            state=ToolCallState(d.get("state", ToolCallState.PENDING_MODEL.value)),
            result=d.get("result"),
            error=d.get("error"),
            created_at=d.get("createdAt", d.get("created_at", 0.0)),
            updated_at=d.get("updatedAt", d.get("updated_at", 0.0)),
        )

