"""
Account service — signup, lookup and billing status.

Rules:
- subscription_status / subscription_tier are stored as given; the access
  evaluator interprets them.
- db.commit() only at the root function.

Public API
----------
signup(db, email, name, tier, status, now)        -> User
find_user(db, user_id)                            -> Optional[User]
get_user(db, user_id)                             -> User  (raises UserNotFoundError)
account_snapshot(user)                            -> AccountSnapshot
record_subscription(db, user_id, status, tier)    -> User
require_access(user, now)                         -> AccessDecision  (raises AccessDeniedError)
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.errors import AccessDeniedError, UserAlreadyExistsError, UserNotFoundError
from app.core.logging import get_logger
from app.models.user import User
from app.services.access import AccessDecision, evaluate_access
from app.services.features import TRIAL_DAYS, Tier
from app.services.snapshots import AccountSnapshot

logger = get_logger(__name__)


def signup(
    db: Session,
    email: str,
    name: Optional[str] = None,
    tier: Optional[str] = None,
    status: Optional[str] = None,
    now: Optional[datetime] = None,
) -> User:
    """
    Create an account. Without a paid tier the account starts a trial that
    ends TRIAL_DAYS after creation; a paid signup starts `active`.
    """
    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first() is not None:
        raise UserAlreadyExistsError(email=email)

    now = now or utc_now()
    paid = tier is not None and tier != Tier.trial.value
    user = User(
        email=email,
        name=name,
        subscription_status=status or ("active" if paid else "trial"),
        subscription_tier=tier if paid else Tier.trial.value,
        trial_end_date=None if paid else now + timedelta(days=TRIAL_DAYS),
        recovery_tokens_used=0,
        total_xp=0,
        last_token_reset=now,
        created_at=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(
        "user_signed_up",
        user_id=user.id,
        tier=user.subscription_tier,
        status=user.subscription_status,
    )
    return user


def find_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user(db: Session, user_id: int) -> User:
    user = find_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id=user_id)
    return user


def account_snapshot(user: User) -> AccountSnapshot:
    return AccountSnapshot(
        id=user.id,
        created_at=user.created_at,
        subscription_status=user.subscription_status,
        subscription_tier=user.subscription_tier,
        trial_end_date=user.trial_end_date,
        recovery_tokens_used=user.recovery_tokens_used or 0,
        total_xp=user.total_xp or 0,
        last_token_reset=user.last_token_reset,
    )


def record_subscription(
    db: Session,
    user_id: int,
    status: str,
    tier: Optional[str] = None,
) -> User:
    """Store the billing processor's latest status (and tier, when given) verbatim."""
    user = get_user(db, user_id)
    previous = user.subscription_status
    user.subscription_status = status
    if tier is not None:
        user.subscription_tier = tier
    db.commit()
    db.refresh(user)
    logger.info(
        "subscription_recorded",
        user_id=user.id,
        previous_status=previous,
        status=status,
        tier=user.subscription_tier,
    )
    return user


def require_access(user: User, now: Optional[datetime] = None) -> AccessDecision:
    """Access decision for a user that must be allowed to act."""
    decision = evaluate_access(account_snapshot(user), now)
    if not decision.has_access:
        raise AccessDeniedError(reason=decision.reason, message=decision.message)
    return decision
