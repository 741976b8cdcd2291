"""
toolgate - Human-in-the-loop tool calling and task scheduling for chat agents

Exposes tools to a language model, runs low-risk ones automatically and
parks side-effecting ones until a human approves them. Includes a
scheduler for one-shot, delayed and cron tasks and a Klaviyo integration.

Quick Start:
    from toolgate import AgentSession, ToolExecutor

    session = AgentSession(state_dir="~/.toolgate/chat-42")
    await session.start()

    executor = ToolExecutor(llm_client=my_llm_client, session=session)
    result = await executor.run("Schedule a reminder to call Sam in 30 seconds")

    for req in result.pending:
        await session.decide(req.call_id, approved=True)
    result = await executor.resume()
"""

__version__ = "0.1.0"

from .audit_logger import AuditLogger
from .config import ToolGateConfig
from .errors import (
    ConfigError,
    DuplicateNameError,
    ExecutorNotFoundError,
    IntegrationError,
    InvalidCronError,
    InvalidTransitionError,
    InvalidTriggerError,
    LookupMissError,
    MissingCredentialsError,
    NotFoundError,
    PastTimestampError,
    RemoteCallError,
    SchedulingError,
    SchemaValidationError,
    ToolGateError,
    UnknownActionError,
    UnknownScheduleError,
    UnknownToolCallError,
    UnknownToolError,
    ValidationError,
)
from .gate import ConfirmationGate, ConfirmationRequest, GateOutcome, PendingCallStore
from .protocols import LLMClientProtocol
from .scheduling import (
    PastDuePolicy,
    ScheduleDescriptor,
    ScheduleKind,
    ScheduleStore,
    TaskDispatcher,
)
from .session import AgentSession
from .tools import (
    ExecutorTable,
    SideEffectClass,
    ToolCall,
    ToolCallState,
    ToolContext,
    ToolDefinition,
    ToolExecutor,
    ToolRegistry,
    TurnResult,
    tool,
)
from .toolset import default_tools

__all__ = [
    "__version__",
    # Session
    "AgentSession",
    "ToolGateConfig",
    "AuditLogger",
    "LLMClientProtocol",
    "default_tools",
    # Tools
    "ExecutorTable",
    "SideEffectClass",
    "ToolCall",
    "ToolCallState",
    "ToolContext",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "TurnResult",
    "tool",
    # Gate
    "ConfirmationGate",
    "ConfirmationRequest",
    "GateOutcome",
    "PendingCallStore",
    # Scheduling
    "PastDuePolicy",
    "ScheduleDescriptor",
    "ScheduleKind",
    "ScheduleStore",
    "TaskDispatcher",
    # Errors
    "ConfigError",
    "DuplicateNameError",
    "ExecutorNotFoundError",
    "IntegrationError",
    "InvalidCronError",
    "InvalidTransitionError",
    "InvalidTriggerError",
    "LookupMissError",
    "MissingCredentialsError",
    "NotFoundError",
    "PastTimestampError",
    "RemoteCallError",
    "SchedulingError",
    "SchemaValidationError",
    "ToolGateError",
    "UnknownActionError",
    "UnknownScheduleError",
    "UnknownToolCallError",
    "UnknownToolError",
    "ValidationError",
]
