"""
Activity, progress, identity and rewards schemas.

POST /users/{id}/reflections  → ReflectionRequest  → ActivityResponse
POST /users/{id}/triggers     → TriggerRequest     → ActivityResponse
GET  /users/{id}/progress     →                      ProgressResponse
GET  /users/{id}/identity     →                      IdentityProfileResponse
GET  /users/{id}/rewards      →                      RewardsResponse
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.vows import XPAwardResponse


class ReflectionRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000, examples=["I noticed the urge and stayed present."])
    vow_id: Optional[int] = Field(default=None, gt=0)


class TriggerRequest(BaseModel):
    emotions: list[str] = Field(
        default_factory=list,
        max_length=10,
        description="Emotion labels. Requires the emotion_tracking feature (initiation+).",
        examples=[["stressed", "lonely"]],
    )
    urge_intensity: Optional[int] = Field(default=None, ge=0, le=10)
    location: Optional[str] = Field(default=None, max_length=128)
    content: Optional[str] = Field(default=None, max_length=5000)
    vow_id: Optional[int] = Field(default=None, gt=0)


class ActivityResponse(BaseModel):
    id: int
    user_id: int
    vow_id: Optional[int] = None
    category: str
    day: str
    occurred_at: str
    content: Optional[str] = None
    emotions: list[str] = Field(default_factory=list)
    urge_intensity: Optional[int] = None
    location: Optional[str] = None
    xp: Optional[XPAwardResponse] = None


class ProgressResponse(BaseModel):
    total_vows: int
    active_vows: int
    completed_vows: int
    total_reflections: int
    recent_reflections: int = Field(description="Reflections in the last 7 days.")
    trigger_logs: int
    current_streak: int = Field(description="Best current streak among active vows; 0 with none active.")
    longest_streak: int
    alignment_score: int = Field(ge=0, le=100)
    message: str
    last_reflection_at: Optional[datetime] = None
    last_vow_at: Optional[datetime] = None


class PatternResponse(BaseModel):
    type: str
    value: Optional[str] = None
    count: Optional[int] = None
    description: Optional[str] = None


class MilestoneResponse(BaseModel):
    type: str
    date: Optional[str] = None
    description: str


class BeforeSelfResponse(BaseModel):
    traits: list[str]
    patterns: list[PatternResponse]
    trigger_points: list[PatternResponse]


class BecomingSelfResponse(BaseModel):
    strengths: list[str]
    growth: list[PatternResponse]
    alignment_score: int


class JourneyResponse(BaseModel):
    start_date: Optional[str] = None
    days_active: int
    milestones: list[MilestoneResponse]


class IdentityProfileResponse(BaseModel):
    before_self: BeforeSelfResponse
    becoming_self: BecomingSelfResponse
    journey: JourneyResponse
    message: str


class NextLevelResponse(BaseModel):
    current: int
    required: int
    remaining: int
    percentage: int


class RewardsResponse(BaseModel):
    total_xp: int
    level: int
    title: str
    next_level: Optional[NextLevelResponse] = Field(default=None, description="null at the top level.")
    streak: int
    streak_multiplier: float
    today_xp: int
    daily_cap: int
