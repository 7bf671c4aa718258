"""
Vow request / response schemas.

POST /vows                    → VowCreateRequest   → VowResponse
GET  /vows/{id}               →                      VowResponse
POST /vows/{id}/complete-day  →                      CompleteDayResponse
POST /vows/analyze            → VowAnalyzeRequest  → VowAnalysisResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VowCreateRequest(BaseModel):
    """
    A vow is stored as both parts and the full statement:
    "I'm the type of person that <identity>; therefore, I will <boundary>."
    """
    user_id: int = Field(gt=0, examples=[1])
    identity: str = Field(
        min_length=1,
        max_length=500,
        description="Who the user is becoming.",
        examples=["honors my body"],
    )
    boundary: str = Field(
        min_length=1,
        max_length=500,
        description="What they will always / never do again.",
        examples=["never drink alcohol again"],
    )
    duration_days: int = Field(default=30, ge=1, le=365, examples=[30])

    @field_validator("identity", "boundary")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        if "; therefore, I will " in v:
            raise ValueError("must not contain the statement separator")
        return v


class XPAwardResponse(BaseModel):
    awarded: int
    total_xp: int
    today_xp: int
    daily_cap: int
    leveled_up: bool = False
    new_level: Optional[int] = None
    title: Optional[str] = None


class VowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    identity: str
    boundary: str
    statement: str
    duration_days: int
    current_day: int
    current_streak: int
    longest_streak: int
    days_kept: int
    days_breached: int
    status: str
    last_completed_date: Optional[str] = None
    streak_health: int = Field(description="Current streak as % of elapsed vow days.")
    encouragement: str
    created_at: str
    xp: Optional[XPAwardResponse] = None


class CompleteDayResponse(BaseModel):
    vow: VowResponse
    completed: bool = Field(description="True when this completion finished the vow.")
    xp: XPAwardResponse


class VowAnalyzeRequest(BaseModel):
    text: str = Field(
        min_length=1,
        max_length=2000,
        examples=["I am the type of person that fights temptation; therefore, I will never drink again."],
    )


class LanguageScanResponse(BaseModel):
    found: bool
    words: list[str]
    severity: Optional[str] = None


class StructureResponse(BaseModel):
    is_proper_structure: bool
    has_identity_statement: bool
    has_therefore: bool
    has_never_always: bool
    has_again: bool
    structure_score: int = Field(ge=0, le=3)


class SuggestionResponse(BaseModel):
    type: str
    message: str
    original: Optional[str] = None
    suggested: Optional[str] = None
    example: Optional[str] = None


class VowAnalysisResponse(BaseModel):
    combat: LanguageScanResponse
    remembrance: LanguageScanResponse
    structure: StructureResponse
    suggestions: list[SuggestionResponse] = Field(default_factory=list)
    parsed_identity: Optional[str] = None
    parsed_boundary: Optional[str] = None
