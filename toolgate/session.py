"""
AgentSession - One logical conversation: history, tools, gate and dispatcher.

The session is the handle every tool executor receives through
``ToolContext.session``. Scheduled firings call back into it through
``invoke_action``; they never pass through the confirmation gate.
"""

import inspect
import logging
import os
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .audit_logger import AuditLogger
from .config import ToolGateConfig
from .errors import DuplicateNameError, UnknownActionError
from .gate.confirmation import ConfirmationGate
from .gate.models import ConfirmationRequest, GateOutcome
from .gate.pending import PendingCallStore
from .integrations.klaviyo.client import KlaviyoClient
from .scheduling.dispatcher import DEFAULT_ACTION, TaskDispatcher
from .scheduling.models import PastDuePolicy
from .scheduling.store import ScheduleStore
from .tools.models import ToolContext
from .tools.registry import ExecutorTable, ToolRegistry
from .toolset import default_tools

logger = logging.getLogger(__name__)

# action(session, payload)
SessionAction = Callable[["AgentSession", str], Union[Awaitable[Any], Any]]

PENDING_CALLS_FILE = "pending_calls.json"
SCHEDULES_FILE = "schedules.json"


async def execute_task(session: "AgentSession", payload: str) -> None:
    """Default scheduled action: note the task in the conversation."""
    session.history.append({
        "role": "user",
        "content": f"Running scheduled task: {payload}",
    })


class AgentSession:
    """
    Per-conversation owner of the tool registry, confirmation gate and
    task dispatcher.

    Usage:
        session = AgentSession(state_dir="~/.toolgate/chat-42")
        await session.start()
        ...
        await session.stop()
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        registry: Optional[ToolRegistry] = None,
        executions: Optional[ExecutorTable] = None,
        state_dir: Optional[str] = None,
        past_due_policy: PastDuePolicy = PastDuePolicy.REJECT,
        clock: Optional[Callable[[], datetime]] = None,
        max_sleep_s: float = 60.0,
        klaviyo: Optional[KlaviyoClient] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.history: List[Dict[str, Any]] = []

        if registry is None:
            registry, default_executions = default_tools()
            if executions is None:
                executions = default_executions
        self.registry = registry
        self.executions = executions if executions is not None else ExecutorTable()
        self.klaviyo = klaviyo if klaviyo is not None else KlaviyoClient()

        self.audit = AuditLogger(session_id=self.id)
        pending_path = os.path.join(state_dir, PENDING_CALLS_FILE) if state_dir else None
        schedules_path = os.path.join(state_dir, SCHEDULES_FILE) if state_dir else None

        self.gate = ConfirmationGate(
            self.registry,
            self.executions,
            pending_store=PendingCallStore(pending_path),
            history=self.history,
            audit=self.audit,
        )
        self.dispatcher = TaskDispatcher(
            ScheduleStore(schedules_path),
            self.invoke_action,
            past_due_policy=past_due_policy,
            clock=clock,
            audit=self.audit,
            max_sleep_s=max_sleep_s,
        )

        self._actions: Dict[str, SessionAction] = {}
        self.register_action(DEFAULT_ACTION, execute_task)

    @classmethod
    def from_config(cls, config: ToolGateConfig, session_id: Optional[str] = None, **kwargs) -> "AgentSession":
        """Build a session whose stores live under ``config.state_dir/<session_id>``."""
        session_id = session_id or uuid.uuid4().hex
        state_dir = None
        if config.state_dir:
            state_dir = os.path.join(os.path.expanduser(config.state_dir), session_id)
        kwargs.setdefault("klaviyo", KlaviyoClient(
            base_url=config.klaviyo.base_url,
            revision=config.klaviyo.revision,
        ))
        return cls(
            session_id=session_id,
            state_dir=state_dir,
            past_due_policy=config.past_due_policy,
            max_sleep_s=config.max_sleep_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Reload parked calls and start the dispatcher's timer loop."""
        await self.gate.restore()
        await self.dispatcher.start()
        logger.info(f"Session {self.id} started")

    async def stop(self) -> None:
        await self.dispatcher.stop()
        logger.info(f"Session {self.id} stopped")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def register_action(self, name: str, action: SessionAction) -> None:
        if name in self._actions:
            raise DuplicateNameError(name)
        self._actions[name] = action

    async def invoke_action(self, name: str, payload: str) -> Any:
        """Run a named session action (what a schedule firing calls).

        Raises:
            UnknownActionError: no action registered under *name*
        """
        action = self._actions.get(name)
        if action is None:
            raise UnknownActionError(name)
        logger.info(f"Session {self.id} running action '{name}'")
        result = action(self, payload)
        if inspect.isawaitable(result):
            result = await result
        return result

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    def context(self, **metadata: Any) -> ToolContext:
        return ToolContext(session=self, metadata=metadata)

    def pending(self) -> List[ConfirmationRequest]:
        return self.gate.pending()

    async def decide(self, call_id: str, approved: bool) -> GateOutcome:
        """Approve or deny a parked tool call."""
        return await self.gate.decide(call_id, approved, self.context())
