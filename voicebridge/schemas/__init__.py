"""Pydantic schemas for API request/response."""
from voicebridge.schemas.preferences import PreferenceRequest, PreferenceResponse
from voicebridge.schemas.sessions import SessionStatusResponse, StartSessionRequest, StopSessionResponse

__all__ = [
    "PreferenceRequest",
    "PreferenceResponse",
    "SessionStatusResponse",
    "StartSessionRequest",
    "StopSessionResponse",
]
