"""
Confirmation Gate - state machine between model-issued tool calls and
their executors.

AUTO tools run immediately. REQUIRES_CONFIRMATION tools are parked until
a human approves or denies them; only approval runs the confirmed
executor. Either way the result lands in the conversation history in the
same ``{"role": "tool", ...}`` shape.
"""

import asyncio
import dataclasses
import json
import logging
import time
from typing import Any, Dict, List, Optional

from ..audit_logger import AuditLogger
from ..errors import (
    ExecutorNotFoundError,
    InvalidTransitionError,
    UnknownToolCallError,
    UnknownToolError,
    ValidationError,
)
from ..tools.models import (
    Executor,
    SideEffectClass,
    ToolCall,
    ToolCallState,
    ToolContext,
)
from ..tools.registry import ExecutorTable, ToolRegistry
from .models import ConfirmationRequest, GateOutcome
from .pending import PendingCallStore

logger = logging.getLogger(__name__)

_S = ToolCallState

_TRANSITIONS = {
    _S.PENDING_MODEL: frozenset({_S.AUTO_RUNNING, _S.AWAITING_CONFIRMATION, _S.FAILED}),
    _S.AUTO_RUNNING: frozenset({_S.COMPLETED, _S.FAILED}),
    _S.AWAITING_CONFIRMATION: frozenset({_S.APPROVED, _S.DENIED}),
    _S.APPROVED: frozenset({_S.COMPLETED, _S.FAILED}),
}


def _transition(call: ToolCall, target: ToolCallState) -> None:
    if target not in _TRANSITIONS.get(call.state, frozenset()):
        raise InvalidTransitionError(call.id, call.state.value, target.value)
    call.state = target
    call.updated_at = time.time()


def _to_content(result: Any) -> str:
    """Convert an executor return value to the string the model sees."""
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, indent=2, default=str)


class ConfirmationGate:
    """
    Classifies, parks, resumes and records tool calls for one session.

    Usage:
        gate = ConfirmationGate(registry, executions, history=session.history)
        outcomes = await gate.run_turn(calls, context)
        for req in gate.pending():
            ...  # show req.tool_name / req.arguments to the user
        await gate.decide(req.call_id, approved=True, context=context)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        executions: ExecutorTable,
        pending_store: Optional[PendingCallStore] = None,
        history: Optional[List[Dict[str, Any]]] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.registry = registry
        self.executions = executions
        self.pending_store = pending_store if pending_store is not None else PendingCallStore()
        self.history: List[Dict[str, Any]] = history if history is not None else []
        self.audit = audit if audit is not None else AuditLogger()
        self._lock = asyncio.Lock()

    async def restore(self) -> None:
        """Reload calls that were awaiting confirmation before a restart."""
        await self.pending_store.load()

    # ------------------------------------------------------------------
    # Model-facing
    # ------------------------------------------------------------------

    async def run_turn(self, calls: List[ToolCall], context: ToolContext) -> List[GateOutcome]:
        """Process a turn's tool calls one at a time, in emitted order."""
        outcomes = []
        for call in calls:
            outcomes.append(await self.handle(call, context))
        return outcomes

    async def handle(self, call: ToolCall, context: ToolContext) -> GateOutcome:
        """Classify a fresh tool call and either run it or park it."""
        try:
            side_effect = self.registry.classify(call.name)
            call.arguments = self.registry.validate(call.name, call.arguments)
        except (UnknownToolError, ValidationError) as e:
            logger.warning(f"Rejected tool call '{call.name}' ({call.id}): {e}")
            self.audit.log_validation_failure(call.id, call.name, str(e))
            return self._finish(call, _S.FAILED, f"Error: {e}", is_error=True)

        if side_effect == SideEffectClass.AUTO:
            _transition(call, _S.AUTO_RUNNING)
            executor = self.registry.resolve(call.name).executor
            return await self._execute(call, executor, context, path="auto")

        _transition(call, _S.AWAITING_CONFIRMATION)
        async with self._lock:
            self.pending_store.add(call)
            await self.pending_store.save()
        self.audit.log_confirmation_requested(call.id, call.name, sorted(call.arguments))
        logger.info(f"Tool call '{call.name}' ({call.id}) awaiting confirmation")
        return GateOutcome(
            call_id=call.id,
            tool_name=call.name,
            state=call.state,
            content=f"Awaiting user confirmation to run '{call.name}'.",
        )

    # ------------------------------------------------------------------
    # Human-facing
    # ------------------------------------------------------------------

    def pending(self) -> List[ConfirmationRequest]:
        """Calls currently awaiting a decision, in the order they were parked."""
        return [ConfirmationRequest.from_call(c) for c in self.pending_store.list()]

    def get_call(self, call_id: str) -> ToolCall:
        call = self.pending_store.get(call_id)
        if call is None:
            raise UnknownToolCallError(call_id)
        return call

    async def decide(self, call_id: str, approved: bool, context: ToolContext) -> GateOutcome:
        """Apply a human approve/deny decision to a parked call.

        Raises:
            UnknownToolCallError: no parked call with that id
            InvalidTransitionError: the call is not awaiting confirmation
            ExecutorNotFoundError: approved, but no confirmed executor exists;
                the call stays parked
        """
        async with self._lock:
            call = self.get_call(call_id)
            if call.state != _S.AWAITING_CONFIRMATION:
                raise InvalidTransitionError(
                    call.id, call.state.value,
                    (_S.APPROVED if approved else _S.DENIED).value,
                )

            executor: Optional[Executor] = None
            if approved:
                try:
                    executor = self.executions.get(call.name)
                except ExecutorNotFoundError:
                    logger.error(
                        f"Tool '{call.name}' requires confirmation but has no confirmed executor"
                    )
                    raise
                _transition(call, _S.APPROVED)
            else:
                _transition(call, _S.DENIED)

            self.pending_store.remove(call.id)
            await self.pending_store.save()

        decision = "approved" if approved else "denied"
        self.audit.log_confirmation_decision(call.id, call.name, decision)
        logger.info(f"Tool call '{call.name}' ({call.id}) {decision}")

        if not approved:
            note = f"User denied permission to run '{call.name}'."
            return self._finish(call, _S.DENIED, note)

        return await self._execute(call, executor, context, path="confirmed")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _execute(
        self,
        call: ToolCall,
        executor: Executor,
        context: ToolContext,
        path: str,
    ) -> GateOutcome:
        ctx = dataclasses.replace(context, call_id=call.id)
        start = time.monotonic()
        try:
            result = await executor(call.arguments, ctx)
        except Exception as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.error(f"Tool '{call.name}' execution failed: {e}", exc_info=True)
            self.audit.log_tool_execution(call.id, call.name, path, False, duration_ms, error=str(e))
            return self._finish(call, _S.FAILED, f"Error executing {call.name}: {e}", is_error=True)

        duration_ms = int((time.monotonic() - start) * 1000)
        self.audit.log_tool_execution(call.id, call.name, path, True, duration_ms)
        logger.info(f"Tool '{call.name}' executed ({path}, {duration_ms}ms)")
        return self._finish(call, _S.COMPLETED, _to_content(result), data=result)

    def _finish(
        self,
        call: ToolCall,
        state: ToolCallState,
        content: str,
        is_error: bool = False,
        data: Any = None,
    ) -> GateOutcome:
        """Move the call to a terminal state and fold its result into history."""
        if call.state != state:
            _transition(call, state)
        if is_error:
            call.error = content
        call.result = content
        self.history.append({
            "role": "tool",
            "tool_call_id": call.id,
            "content": content,
        })
        return GateOutcome(
            call_id=call.id,
            tool_name=call.name,
            state=state,
            content=content,
            is_error=is_error,
            data=data,
        )
