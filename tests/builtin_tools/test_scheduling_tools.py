"""
Tests for the scheduleTask / getScheduledTasks / cancelScheduledTask tools
"""

import json

import pytest
from datetime import datetime, timedelta, timezone

from toolgate.builtin_tools import scheduling
from toolgate.session import AgentSession
from toolgate.tools import SideEffectClass, ToolCall, ToolCallState, ToolContext

T0 = datetime(2030, 1, 1, 0, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def session(clock):
    return AgentSession(session_id="s1", clock=clock)


class TestScheduleTask:

    @pytest.mark.asyncio
    async def test_no_schedule_is_informational(self, session):
        result = await scheduling.schedule_task.executor(
            {"type": "no-schedule", "payload": "something"}, session.context(),
        )
        assert result == "Not a valid schedule input"
        assert session.dispatcher.list() == []

    @pytest.mark.asyncio
    async def test_delayed(self, session):
        result = await scheduling.schedule_task.executor(
            {"type": "delayed", "when": 30, "payload": "stretch"}, session.context(),
        )

        [desc] = session.dispatcher.list()
        assert result == f'Task scheduled for type "delayed" : 30 (id: {desc.id})'
        assert desc.next_fire_at == T0 + timedelta(seconds=30)
        assert desc.payload == "stretch"

    @pytest.mark.asyncio
    async def test_invalid_cron_reported(self, session):
        result = await scheduling.schedule_task.executor(
            {"type": "cron", "when": "not cron", "payload": "x"}, session.context(),
        )
        assert result.startswith("Error scheduling task:")
        assert session.dispatcher.list() == []

    @pytest.mark.asyncio
    async def test_past_date_reported(self, session):
        result = await scheduling.schedule_task.executor(
            {"type": "scheduled", "when": "2020-01-01T00:00:00Z", "payload": "x"}, session.context(),
        )
        assert result.startswith("Error scheduling task:")

    @pytest.mark.asyncio
    async def test_without_session(self):
        result = await scheduling.schedule_task.executor(
            {"type": "delayed", "when": 5, "payload": "x"}, ToolContext(),
        )
        assert result == "Scheduling is not available."

    @pytest.mark.asyncio
    async def test_unknown_type_fails_validation(self, session):
        outcome = await session.gate.handle(
            ToolCall("c1", "scheduleTask", {"type": "weekly", "when": "mon", "payload": "x"}),
            session.context(),
        )
        assert outcome.state == ToolCallState.FAILED
        assert "type" in outcome.content


class TestListAndCancelTools:

    @pytest.mark.asyncio
    async def test_list_empty(self, session):
        result = await scheduling.get_scheduled_tasks.executor({}, session.context())
        assert result == "No scheduled tasks found."

    @pytest.mark.asyncio
    async def test_list_through_gate(self, session, clock):
        await session.dispatcher.schedule_request("delayed", 60, "first")
        clock.now = T0 + timedelta(seconds=1)
        await session.dispatcher.schedule_request("cron", "0 9 * * *", "second")

        outcome = await session.gate.handle(ToolCall("c1", "getScheduledTasks", {}), session.context())

        assert outcome.state == ToolCallState.COMPLETED
        tasks = json.loads(outcome.content)
        assert [t["payload"] for t in tasks] == ["first", "second"]
        assert tasks[1]["cron"] == "0 9 * * *"

    @pytest.mark.asyncio
    async def test_cancel(self, session):
        schedule_id = await session.dispatcher.schedule_request("delayed", 60, "x")

        result = await scheduling.cancel_scheduled_task.executor({"taskId": schedule_id}, session.context())

        assert result == f"Task {schedule_id} has been successfully canceled."
        assert session.dispatcher.list() == []

    @pytest.mark.asyncio
    async def test_cancel_unknown(self, session):
        result = await scheduling.cancel_scheduled_task.executor({"taskId": "nope"}, session.context())
        assert result == "Error canceling task nope: Unknown schedule 'nope'"

    def test_scheduling_tools_run_automatically(self, session):
        for name in ("scheduleTask", "getScheduledTasks", "cancelScheduledTask"):
            assert session.registry.classify(name) == SideEffectClass.AUTO
