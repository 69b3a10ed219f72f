"""Schemas for per-user language preferences."""
from __future__ import annotations

from pydantic import BaseModel, Field


class PreferenceRequest(BaseModel):
    """Request body for PUT /api/preferences/{user_id}."""

    source_lang: str = Field(..., description="Language the user speaks (ja, ko, en)")
    target_lang: str = Field(..., description="Language to translate into (ja, ko, en)")


class PreferenceResponse(BaseModel):
    user_id: str
    source_lang: str
    target_lang: str
    source_name: str = Field("", description="Display name, e.g. Japanese")
    target_name: str = Field("", description="Display name, e.g. Korean")
