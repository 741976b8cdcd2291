"""Pydantic request/response models for the toolgate API."""

from typing import Any, Optional

from pydantic import BaseModel


class DecisionRequest(BaseModel):
    approved: bool


class DecisionResponse(BaseModel):
    callId: str
    toolName: str
    state: str
    content: str
    isError: bool = False
    data: Optional[Any] = None
