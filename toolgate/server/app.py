"""FastAPI app creation and shared dependencies for the confirmation surface."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from ..session import AgentSession

logger = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_session(request: Request) -> AgentSession:
    """Return the session this app serves, or 503 if none is attached."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(503, "No session attached")
    return session


async def verify_api_key(
    request: Request,
    api_key_header_value: Optional[str] = Security(_api_key_header),
):
    """Verify API key from X-API-Key or Authorization: Bearer <key>.

    When no key is configured, all requests are allowed (dev mode).
    """
    expected = getattr(request.app.state, "api_key", None)
    if expected is None:
        return None

    if api_key_header_value and api_key_header_value == expected:
        return api_key_header_value

    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:]
        if token == expected:
            return token

    raise HTTPException(401, "Invalid or missing API key")


def create_app(
    session: AgentSession,
    api_key: Optional[str] = None,
    manage_session: bool = False,
) -> FastAPI:
    """Create a FastAPI app exposing *session*'s confirmations and schedules.

    With *manage_session* the app starts the session on startup and stops
    it on shutdown.
    """
    lifespan = None
    if manage_session:
        @asynccontextmanager
        async def lifespan(_app: FastAPI):
            await session.start()
            try:
                yield
            finally:
                await session.stop()

    api = FastAPI(title="toolgate", version="0.1.0", lifespan=lifespan)
    api.state.session = session
    api.state.api_key = api_key

    if api_key is None:
        logger.warning(
            "No API key configured. Confirmation endpoints are unauthenticated. "
            "Set server.api_key or TOOLGATE_API_KEY to enable authentication."
        )

    from .routes import register_routes
    register_routes(api)
    return api
