"""
Schemas for the session control API.

Start/stop map ControlStatus onto HTTP: STARTED/STOPPED -> 200,
ALREADY_ACTIVE -> 409, NO_SESSION -> 404.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from voicebridge.sessions.models import SessionMode, SessionState


class StartSessionRequest(BaseModel):
    """Request body for POST /api/sessions/{scope_id}/start."""

    mode: SessionMode = Field(..., description="capturing | translating")
    origin_channel: str | None = Field(None, description="Where session messages should be posted")


class SessionStatusResponse(BaseModel):
    """Current session of a scope. active=False means Idle."""

    scope_id: str
    active: bool
    mode: SessionMode | None = None
    state: SessionState | None = None
    generation: int | None = None
    speakers: list[str] = Field(default_factory=list, description="Speakers with buffered audio")


class StopSessionResponse(BaseModel):
    """Response body for POST /api/sessions/{scope_id}/stop."""

    scope_id: str
    mode: SessionMode
    artifacts: list[str] = Field(default_factory=list, description="Capture artifacts written on finalize")
    transcript: str | None = Field(None, description="Labeled capture transcript; None for translating")
    minutes: str | None = Field(None, description="Meeting minutes; None when summarization failed")
    errors: list[str] = Field(default_factory=list)
    degraded: bool = False
