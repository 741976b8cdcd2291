"""Scheduled task routes."""

from fastapi import APIRouter, Depends, HTTPException

from ...errors import UnknownScheduleError
from ...session import AgentSession
from ..app import require_session, verify_api_key

router = APIRouter()


@router.get("/api/schedules", dependencies=[Depends(verify_api_key)])
async def list_schedules(session: AgentSession = Depends(require_session)):
    """List pending schedules in creation order."""
    return [d.to_dict() for d in session.dispatcher.list()]


@router.get("/api/schedules/status", dependencies=[Depends(verify_api_key)])
async def schedules_status(session: AgentSession = Depends(require_session)):
    """Get dispatcher status."""
    return await session.dispatcher.status()


@router.delete("/api/schedules/{schedule_id}", dependencies=[Depends(verify_api_key)])
async def cancel_schedule(schedule_id: str, session: AgentSession = Depends(require_session)):
    """Cancel a pending schedule."""
    try:
        await session.dispatcher.cancel(schedule_id)
    except UnknownScheduleError as e:
        raise HTTPException(404, str(e))
    return {"cancelled": schedule_id}
