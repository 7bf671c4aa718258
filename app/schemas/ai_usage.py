"""
AI usage and preference schemas.

GET  /users/{id}/ai-usage/{feature}   →                       AIUsageResponse
POST /users/{id}/ai-usage/{feature}   →                       AIUsageResponse
GET  /users/{id}/preferences          →                       PreferencesResponse
PUT  /users/{id}/preferences          → PreferencesUpdate  →  PreferencesResponse
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class AIUsageResponse(BaseModel):
    feature: str
    used: int
    limit: int
    remaining: int
    can_use: bool
    message: str


class PreferencesUpdate(BaseModel):
    """Only the fields sent are changed."""
    theme: Optional[Literal["light", "dark"]] = None
    notifications: Optional[bool] = None
    auto_save: Optional[bool] = None
    sound_enabled: Optional[bool] = None


class PreferencesResponse(BaseModel):
    theme: str = Field(examples=["light"])
    notifications: bool
    auto_save: bool
    sound_enabled: bool
