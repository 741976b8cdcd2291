"""Pending tool call confirmation routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ...errors import ExecutorNotFoundError, InvalidTransitionError, UnknownToolCallError
from ...session import AgentSession
from ..app import require_session, verify_api_key
from ..models import DecisionRequest, DecisionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/confirmations", dependencies=[Depends(verify_api_key)])
async def list_confirmations(session: AgentSession = Depends(require_session)):
    """List tool calls awaiting a human decision."""
    return [req.to_dict() for req in session.pending()]


@router.post(
    "/api/confirmations/{call_id}",
    response_model=DecisionResponse,
    dependencies=[Depends(verify_api_key)],
)
async def decide_confirmation(
    call_id: str,
    req: DecisionRequest,
    session: AgentSession = Depends(require_session),
):
    """Approve or deny a parked tool call."""
    try:
        outcome = await session.decide(call_id, req.approved)
    except UnknownToolCallError as e:
        raise HTTPException(404, str(e))
    except InvalidTransitionError as e:
        raise HTTPException(409, str(e))
    except ExecutorNotFoundError as e:
        logger.error(f"Approved call {call_id} has no executor: {e}")
        raise HTTPException(500, str(e))

    return DecisionResponse(
        callId=outcome.call_id,
        toolName=outcome.tool_name,
        state=outcome.state.value,
        content=outcome.content,
        isError=outcome.is_error,
        data=outcome.data,
    )
