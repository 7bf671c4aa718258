"""
Accounts router.

POST /users                          — Sign up (trial, or paid with a tier)
GET  /users/{user_id}                — Account by ID
POST /users/{user_id}/subscription   — Record billing status / tier
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.db.base import get_db
from app.models.user import User
from app.schemas.common import ErrorResponse, ValidationErrorResponse
from app.schemas.users import SignupRequest, SubscriptionUpdate, UserResponse
from app.services.accounts import get_user, record_subscription, signup

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Serialization helper
# ---------------------------------------------------------------------------

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        subscription_status=user.subscription_status,
        subscription_tier=user.subscription_tier,
        trial_end_date=as_utc(user.trial_end_date).isoformat() if user.trial_end_date else None,
        recovery_tokens_used=user.recovery_tokens_used or 0,
        total_xp=user.total_xp or 0,
        created_at=as_utc(user.created_at).isoformat() if user.created_at else "",
    )


# ---------------------------------------------------------------------------
# POST /users
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    responses={
        201: {"description": "Account created."},
        409: {"model": ErrorResponse, "description": "Email already registered."},
        422: {"model": ValidationErrorResponse, "description": "Validation error."},
    },
)
def create_user(payload: SignupRequest, db: Session = Depends(get_db)):
    """
    Create an account.

    - Without `tier` (or with `trial`) the account starts a **2-day trial**:
      `subscription_status = "trial"`, `trial_end_date = now + 2 days`.
    - With a paid tier the account is created `active` on that tier.
    """
    user = signup(
        db=db,
        email=payload.email,
        name=payload.name,
        tier=payload.tier.value if payload.tier else None,
    )
    return _user_to_response(user)


# ---------------------------------------------------------------------------
# GET /users/{user_id}
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Retrieve an account",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_user(user_id: int, db: Session = Depends(get_db)):
    return _user_to_response(get_user(db, user_id))


# ---------------------------------------------------------------------------
# POST /users/{user_id}/subscription
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/subscription",
    response_model=UserResponse,
    summary="Record the billing processor's subscription status",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def update_subscription(user_id: int, payload: SubscriptionUpdate, db: Session = Depends(get_db)):
    """
    Store `status` (and `tier`, when sent) exactly as reported. The value is
    not validated against a list: unknown statuses simply deny access.
    """
    user = record_subscription(
        db=db,
        user_id=user_id,
        status=payload.status,
        tier=payload.tier.value if payload.tier else None,
    )
    return _user_to_response(user)
