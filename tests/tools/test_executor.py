"""
Tests for toolgate ToolExecutor

Tests cover:
- Plain answers end the turn
- AUTO tool results are fed back to the model
- The turn pauses on confirmation and resumes after a decision
- Malformed arguments fail validation instead of executing
- Iteration cap
"""

import json
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from toolgate.session import AgentSession
from toolgate.tools import ToolCallState, ToolExecutor


def _response(content: Optional[str] = None, tool_calls: Optional[List[Dict[str, Any]]] = None):
    return SimpleNamespace(content=content, tool_calls=tool_calls)


def _call(call_id: str, name: str, arguments: Any) -> Dict[str, Any]:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


class ScriptedLLM:
    """Returns queued responses and records what it was shown."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.seen: List[List[Dict[str, Any]]] = []
        self.tools: List[Any] = []

    async def chat_completion(self, messages, tools=None, config=None):
        self.seen.append(list(messages))
        self.tools.append(tools)
        return self.responses.pop(0)


@pytest.fixture
def session():
    return AgentSession(session_id="exec")


class TestPlainTurn:

    @pytest.mark.asyncio
    async def test_answer_without_tools(self, session):
        llm = ScriptedLLM(_response("Hello!"))
        result = await ToolExecutor(llm, session).run("hi")

        assert result.content == "Hello!"
        assert not result.awaiting_confirmation
        assert session.history == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "Hello!"},
        ]
        tool_names = {t["function"]["name"] for t in llm.tools[0]}
        assert {"getLocalTime", "getWeatherInformation", "scheduleTask"} <= tool_names

    def test_requires_client(self, session):
        with pytest.raises(ValueError):
            ToolExecutor(None, session)


class TestAutoTools:

    @pytest.mark.asyncio
    async def test_auto_result_fed_back(self, session):
        llm = ScriptedLLM(
            _response(tool_calls=[_call("c1", "getLocalTime", {"location": "Paris"})]),
            _response("It is 10am in Paris."),
        )
        result = await ToolExecutor(llm, session).run("What time is it in Paris?")

        assert result.content == "It is 10am in Paris."
        assert [o.state for o in result.outcomes] == [ToolCallState.COMPLETED]
        second_prompt = llm.seen[1]
        assert second_prompt[-1] == {"role": "tool", "tool_call_id": "c1", "content": "10am"}
        assert second_prompt[-2]["tool_calls"][0]["function"]["name"] == "getLocalTime"

    @pytest.mark.asyncio
    async def test_malformed_arguments_fail_validation(self, session):
        llm = ScriptedLLM(
            _response(tool_calls=[_call("c1", "getLocalTime", "{not json")]),
            _response("Sorry."),
        )
        result = await ToolExecutor(llm, session).run("time?")

        assert result.outcomes[0].state == ToolCallState.FAILED
        assert "arguments must be an object" in result.outcomes[0].content
        assert result.content == "Sorry."

    @pytest.mark.asyncio
    async def test_iteration_cap(self, session):
        looping = [_response(tool_calls=[_call(f"c{i}", "getLocalTime", {"location": "X"})]) for i in range(3)]
        llm = ScriptedLLM(*looping)

        result = await ToolExecutor(llm, session, max_iterations=3).run("loop")

        assert len(result.outcomes) == 3
        assert "trouble" in result.content


class TestConfirmationPause:

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, session):
        llm = ScriptedLLM(
            _response(tool_calls=[_call("c1", "getWeatherInformation", {"city": "Oslo"})]),
            _response("It's sunny in Oslo."),
        )
        executor = ToolExecutor(llm, session)

        paused = await executor.run("Weather in Oslo?")
        assert paused.awaiting_confirmation
        assert [p.call_id for p in paused.pending] == ["c1"]
        assert len(llm.seen) == 1

        still_paused = await executor.resume()
        assert still_paused.awaiting_confirmation
        assert len(llm.seen) == 1

        await session.decide("c1", approved=True)
        result = await executor.resume()

        assert result.content == "It's sunny in Oslo."
        assert llm.seen[1][-1] == {
            "role": "tool", "tool_call_id": "c1", "content": "The weather in Oslo is sunny",
        }

    @pytest.mark.asyncio
    async def test_mixed_turn_runs_auto_calls(self, session):
        llm = ScriptedLLM(_response(tool_calls=[
            _call("c1", "getLocalTime", {"location": "Oslo"}),
            _call("c2", "getWeatherInformation", {"city": "Oslo"}),
        ]))
        result = await ToolExecutor(llm, session).run("time and weather")

        assert [o.state for o in result.outcomes] == [
            ToolCallState.COMPLETED,
            ToolCallState.AWAITING_CONFIRMATION,
        ]
        assert session.history[-1] == {"role": "tool", "tool_call_id": "c1", "content": "10am"}

    @pytest.mark.asyncio
    async def test_openai_shaped_response(self, session):
        function = SimpleNamespace(name="getWeatherInformation", arguments='{"city": "Rome"}')
        message = SimpleNamespace(content=None, tool_calls=[SimpleNamespace(id="c9", function=function)])

        class OpenAIShaped:
            choices = [SimpleNamespace(message=message)]

        llm = ScriptedLLM(OpenAIShaped())
        result = await ToolExecutor(llm, session).run("Rome?")

        assert [p.call_id for p in result.pending] == ["c9"]
        assert result.pending[0].arguments == {"city": "Rome"}
