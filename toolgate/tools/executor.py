"""
toolgate Tool Executor - Drive the model turn loop through the confirmation gate

Each model response's tool calls are handed to the session's
ConfirmationGate. When any call is parked for confirmation the loop
stops and returns the pending requests; ``resume`` picks the loop back
up once every parked call has been decided.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..gate.models import ConfirmationRequest, GateOutcome
from ..protocols import LLMClientProtocol
from .models import ToolCall

if TYPE_CHECKING:
    from ..session import AgentSession

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """What a model turn produced.

    Attributes:
        content: Final assistant text ("" while calls await confirmation)
        outcomes: Gate outcomes of every tool call processed this turn
        pending: Calls the user must approve or deny before the turn continues
    """
    content: str = ""
    outcomes: List[GateOutcome] = field(default_factory=list)
    pending: List[ConfirmationRequest] = field(default_factory=list)

    @property
    def awaiting_confirmation(self) -> bool:
        return bool(self.pending)


class ToolExecutor:
    """
    Runs the tool calling loop with an LLM for one session

    Usage:
        executor = ToolExecutor(llm_client=my_llm_client, session=session)
        result = await executor.run("What's the weather in Paris?")
        if result.awaiting_confirmation:
            await session.decide(result.pending[0].call_id, approved=True)
            result = await executor.resume()
    """

    def __init__(
        self,
        llm_client: LLMClientProtocol,
        session: "AgentSession",
        max_iterations: int = 10,
        llm_config: Optional[Dict[str, Any]] = None,
    ):
        if llm_client is None:
            raise ValueError("llm_client is required")

        self.llm_client = llm_client
        self.session = session
        self.max_iterations = max_iterations
        self.llm_config = llm_config

    async def run(self, user_message: Optional[str] = None) -> TurnResult:
        """Append *user_message* (if any) to history and run the loop."""
        if user_message is not None:
            self.session.history.append({"role": "user", "content": user_message})
        return await self._loop()

    async def resume(self) -> TurnResult:
        """Continue after confirmation decisions have been applied."""
        pending = self.session.gate.pending()
        if pending:
            return TurnResult(pending=pending)
        return await self._loop()

    async def _loop(self) -> TurnResult:
        history = self.session.history
        tools_schema = self.session.registry.schemas()
        outcomes: List[GateOutcome] = []

        for iteration in range(self.max_iterations):
            logger.debug(f"Tool loop iteration {iteration + 1}/{self.max_iterations}")

            response = await self.llm_client.chat_completion(
                messages=history,
                tools=tools_schema or None,
                config=self.llm_config,
            )
            content, raw_calls = self._unpack_response(response)

            if not raw_calls:
                history.append({"role": "assistant", "content": content or ""})
                return TurnResult(content=content or "", outcomes=outcomes)

            calls = [self._parse_tool_call(tc) for tc in raw_calls]
            history.append(self._build_assistant_message(content, calls))

            turn_outcomes = await self.session.gate.run_turn(calls, self.session.context())
            outcomes.extend(turn_outcomes)

            if any(o.awaiting_confirmation for o in turn_outcomes):
                pending = self.session.gate.pending()
                logger.info(f"Turn paused: {len(pending)} tool call(s) awaiting confirmation")
                return TurnResult(outcomes=outcomes, pending=pending)

        logger.error(f"Tool execution exceeded {self.max_iterations} iterations")
        return TurnResult(
            content="I'm having trouble completing this task. Please try again with a simpler request.",
            outcomes=outcomes,
        )

    @staticmethod
    def _unpack_response(response: Any):
        if hasattr(response, "content"):
            return response.content, getattr(response, "tool_calls", None)
        # OpenAI format
        message = response.choices[0].message
        return message.content, getattr(message, "tool_calls", None)

    def _parse_tool_call(self, tool_call: Any) -> ToolCall:
        """Parse LLM tool call to ToolCall object.

        Arguments that are not valid JSON are passed through unchanged so
        the gate rejects them at validation.
        """
        if isinstance(tool_call, ToolCall):
            return tool_call

        if isinstance(tool_call, dict):
            function = tool_call.get("function", tool_call)
            name = function.get("name", "")
            arguments = function.get("arguments")
            call_id = tool_call.get("id", "unknown")
        elif hasattr(tool_call, "function"):
            name = tool_call.function.name
            arguments = tool_call.function.arguments
            call_id = getattr(tool_call, "id", "unknown")
        else:
            name = tool_call.name
            arguments = tool_call.arguments
            call_id = getattr(tool_call, "id", "unknown")

        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                logger.warning(f"Tool call '{name}' has malformed JSON arguments")

        return ToolCall(id=call_id, name=name, arguments=arguments)

    def _build_assistant_message(self, content: Optional[str], calls: List[ToolCall]) -> Dict[str, Any]:
        """Build assistant message dict with tool calls"""
        return {
            "role": "assistant",
            "content": content,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": (
                            json.dumps(call.arguments)
                            if isinstance(call.arguments, dict) else call.arguments
                        ),
                    },
                }
                for call in calls
            ],
        }
