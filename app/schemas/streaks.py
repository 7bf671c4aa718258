"""
Streak schemas.

GET  /users/{id}/streak          → StreakResponse
POST /users/{id}/streak/recover  → RecoveryResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class GraceStatusResponse(BaseModel):
    has_grace: bool
    days_remaining: int
    message: str


class ProtectionMessageResponse(BaseModel):
    title: str
    message: str
    action: Optional[str] = None


class StreakValueResponse(BaseModel):
    emoji: str
    label: str
    color: str


class StreakResponse(BaseModel):
    streak: int = Field(description="Consecutive active days, counting grace-absorbed misses as bridges.")
    grace_used: int
    tier: Optional[str] = None
    max_grace: int
    last_activity: Optional[str] = None
    days_missed: int
    at_risk: bool = Field(description="True once 18h have passed since the last activity.")
    grace: Optional[GraceStatusResponse] = None
    protection: ProtectionMessageResponse
    can_recover: bool
    recovery_cost: int
    tokens_remaining: int
    value: StreakValueResponse
    insights: list[str] = Field(default_factory=list)


class RecoveryResponse(BaseModel):
    success: bool
    cost: int
    xp_spent: int
    new_xp: int
    tokens_used: int
    new_streak: int
