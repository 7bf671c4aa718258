"""
Access / feature schemas.

GET /users/{id}/access             → AccessDecisionResponse
GET /users/{id}/features           → UserFeaturesResponse
GET /features/{feature}/access     → FeatureAccessResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AccessDecisionResponse(BaseModel):
    """
    Whether the account may use the product right now.
    Fields that do not apply to the decision are omitted.
    """
    has_access: bool
    reason: Optional[str] = Field(
        default=None,
        description="NO_USER | TRIAL_EXPIRED | SUBSCRIPTION_CANCELLED | UNKNOWN_STATUS",
    )
    message: Optional[str] = None
    is_trial: Optional[bool] = None
    days_left: Optional[int] = Field(default=None, description="Trial days left, partial days round up.")
    is_paid: Optional[bool] = None


class TierComparisonResponse(BaseModel):
    current_tier: str
    target_tier: str
    price: Optional[float] = None
    new_features: list[str] = Field(default_factory=list)


class UserFeaturesResponse(BaseModel):
    tier: Optional[str] = Field(description="Effective tier; null once the trial is over unpaid.")
    on_trial: bool
    trial_expired: bool
    trial_days_remaining: int
    available: list[str]
    locked: list[str]
    show_upgrade_prompt: bool
    next_tier: Optional[TierComparisonResponse] = None


class FeatureAccessResponse(BaseModel):
    feature: str
    tier: str
    has_access: bool
    limit: Optional[int] = Field(default=None, description="null = unlimited, 0 = not available.")
    upgrade_message: Optional[str] = None
