"""
toolgate Errors - Exception taxonomy shared by the registry, gate, dispatcher
and integration adapters.

Executor-level errors are converted into tool result strings at the
confirmation gate; lookup misses that indicate a configuration problem
(e.g. ExecutorNotFoundError) are allowed to propagate.
"""

from typing import Optional, Sequence, Union


class ToolGateError(Exception):
    """Base class for all toolgate errors."""


class ConfigError(ToolGateError):
    """Invalid configuration value."""


# ── Registry / validation ──


class ValidationError(ToolGateError):
    """Tool arguments rejected before any executor runs."""


class SchemaValidationError(ValidationError):
    """Arguments do not match a tool's input schema.

    Attributes:
        tool_name: Tool whose schema rejected the arguments
        field_path: Dotted path of the offending field ("" for the root)
        reason: Validator message for that field
    """

    def __init__(self, tool_name: str, field_path: Sequence[Union[str, int]], reason: str):
        self.tool_name = tool_name
        self.field_path = ".".join(str(p) for p in field_path)
        self.reason = reason
        where = self.field_path or "<root>"
        super().__init__(f"Invalid arguments for '{tool_name}' at '{where}': {reason}")


class DuplicateNameError(ToolGateError):
    """A tool or action name is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"'{name}' is already registered")


class LookupMissError(ToolGateError):
    """Base class for name/id lookups that found nothing."""


class UnknownToolError(LookupMissError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool '{name}'")


class ExecutorNotFoundError(LookupMissError):
    """A confirmation-required tool has no registered confirmed executor."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No confirmed executor registered for tool '{name}'")


class UnknownToolCallError(LookupMissError):
    def __init__(self, call_id: str):
        self.call_id = call_id
        super().__init__(f"Unknown tool call '{call_id}'")


class UnknownScheduleError(LookupMissError):
    def __init__(self, schedule_id: str):
        self.schedule_id = schedule_id
        super().__init__(f"Unknown schedule '{schedule_id}'")


class UnknownActionError(LookupMissError):
    def __init__(self, action_name: str):
        self.action_name = action_name
        super().__init__(f"Unknown session action '{action_name}'")


# ── Gate ──


class InvalidTransitionError(ToolGateError):
    """A tool call was asked to move between states that are not connected."""

    def __init__(self, call_id: str, current: str, target: str):
        self.call_id = call_id
        self.current = current
        self.target = target
        super().__init__(f"Tool call '{call_id}' cannot move from {current} to {target}")


# ── Scheduling ──


class SchedulingError(ToolGateError):
    """Base class for rejected schedule requests."""


class InvalidTriggerError(SchedulingError):
    """Trigger value does not match the schedule kind."""


class InvalidCronError(SchedulingError):
    def __init__(self, expression: str, reason: Optional[str] = None):
        self.expression = expression
        msg = f"Invalid cron expression '{expression}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PastTimestampError(SchedulingError):
    def __init__(self, timestamp: str):
        self.timestamp = timestamp
        super().__init__(f"Scheduled time {timestamp} has already passed")


# ── Integrations ──


class IntegrationError(ToolGateError):
    """Base class for external API failures."""


class RemoteCallError(IntegrationError):
    """Non-success response from an external API."""

    def __init__(self, status_code: int, body: str, reason: str = ""):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        detail = f"{status_code} {reason}".strip()
        super().__init__(f"API error: {detail} - {body}" if body else f"API error: {detail}")


class NotFoundError(IntegrationError):
    """A natural-key lookup (e.g. profile by email) matched nothing."""


class MissingCredentialsError(IntegrationError):
    def __init__(self, env_var: str):
        self.env_var = env_var
        super().__init__(f"{env_var} environment variable is not set")
