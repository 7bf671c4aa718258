"""
Account request / response schemas.

POST /users                      → SignupRequest       → UserResponse
GET  /users/{id}                 →                       UserResponse
POST /users/{id}/subscription    → SubscriptionUpdate  → UserResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.features import Tier


class SignupRequest(BaseModel):
    """Create an account. Omit `tier` to start the free trial."""
    email: str = Field(
        min_length=3,
        max_length=320,
        description="Login email. Stored lower-cased; must be unique.",
        examples=["ana@example.com"],
    )
    name: Optional[str] = Field(default=None, max_length=128, examples=["Ana"])
    tier: Optional[Tier] = Field(
        default=None,
        description="Paid tier bought at signup. Omit (or 'trial') for the 2-day trial.",
        examples=["initiation"],
    )

    @field_validator("email")
    @classmethod
    def email_has_at(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class SubscriptionUpdate(BaseModel):
    """Billing status reported by the payment processor, stored as given."""
    status: str = Field(
        min_length=1,
        max_length=32,
        description="Opaque status string: active, trial, past_due, canceled, ...",
        examples=["active"],
    )
    tier: Optional[Tier] = Field(default=None, examples=["reflection"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    subscription_status: str
    subscription_tier: Optional[str] = None
    trial_end_date: Optional[str] = None
    recovery_tokens_used: int
    total_xp: int
    created_at: str
