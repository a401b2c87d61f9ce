"""Request descriptor and uniform response envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RequestDescriptor(BaseModel):
    """Shape of one outbound call."""
    method: str
    path: str
    payload: dict[str, Any] | list[Any] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    auth_class: bool = False  # identity endpoints: no token attach, no refresh


class ResponseMeta(BaseModel):
    endpoint: str
    status_code: int
    request_id: str
    timestamp: str


class ResponseEnvelope(BaseModel):
    """Uniform success result returned to every caller."""
    success: bool = True
    data: Any = None
    message: str = "Request successful"
    errors: list[Any] = Field(default_factory=list)
    meta: ResponseMeta
