"""
Vow service — create vows and mark days complete.

Rules:
- Trial accounts may hold up to the basic_vows limit of active vows; tiers
  with unlimited_vows are not counted.
- A calendar day can be completed once per vow; only active vows progress.
- Missing one or more days resets the vow's current streak and counts the
  missed days as breached.
- db.commit() only at the root function.

Public API
----------
create_vow(db, store, user_id, identity, boundary, duration_days, now) -> VowCreated
get_vow(db, vow_id)                                                   -> Vow
complete_day(db, store, vow_id, now)                                  -> DayCompleted
streak_health(vow)                                                    -> int  (0-100)
encouragement_message(vow)                                            -> str
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import as_utc, utc_now
from app.core.numbers import round_half_up
from app.core.errors import (
    DayAlreadyCompletedError,
    FeatureLimitReachedError,
    FeatureLockedError,
    VowNotActiveError,
    VowNotFoundError,
)
from app.core.logging import get_logger
from app.models.activity import ActivityCategory
from app.models.vow import Vow, VowStatus
from app.services.accounts import account_snapshot, get_user, require_access
from app.services.features import (
    Feature,
    get_feature_limit,
    get_upgrade_message,
    get_user_tier,
    has_feature_access,
    is_within_limit,
)
from app.services.kv_store import KeyValueStore
from app.services.progress import XPGrant, grant_xp, record_activity, user_streak
from app.services.vow_statement import create_vow_statement

logger = get_logger(__name__)


def _ev(v) -> str:
    """Return bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


@dataclass
class VowCreated:
    vow: Vow
    xp: XPGrant


@dataclass
class DayCompleted:
    vow: Vow
    xp: XPGrant
    completed: bool


def _check_vow_allowance(db: Session, user_id: int, tier: Optional[str]) -> None:
    if has_feature_access(tier, Feature.unlimited_vows):
        return
    if not has_feature_access(tier, Feature.basic_vows):
        raise FeatureLockedError(
            feature=Feature.basic_vows.value,
            message=get_upgrade_message(Feature.basic_vows),
        )
    active = (
        db.query(Vow)
        .filter(Vow.user_id == user_id, Vow.status == VowStatus.active)
        .count()
    )
    if not is_within_limit(tier, Feature.basic_vows, active):
        raise FeatureLimitReachedError(
            feature=Feature.basic_vows.value,
            limit=get_feature_limit(tier, Feature.basic_vows),
        )


def create_vow(
    db: Session,
    store: KeyValueStore,
    user_id: int,
    identity: str,
    boundary: str,
    duration_days: int,
    now: Optional[datetime] = None,
) -> VowCreated:
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)
    require_access(user, now)
    tier = get_user_tier(account_snapshot(user), now)
    _check_vow_allowance(db, user_id, tier.value if tier else None)

    identity, boundary = identity.strip(), boundary.strip()
    vow = Vow(
        user_id=user_id,
        identity=identity,
        boundary=boundary,
        statement=create_vow_statement(identity, boundary),
        duration_days=duration_days,
        current_day=0,
        current_streak=0,
        longest_streak=0,
        days_kept=0,
        days_breached=0,
        status=VowStatus.active,
        created_at=now,
    )
    db.add(vow)
    db.flush()

    xp = grant_xp(db, store, user, "create_vow", user_streak(db, user, now).streak, now)
    db.commit()
    db.refresh(vow)
    logger.info("vow_created", user_id=user_id, vow_id=vow.id, duration_days=duration_days)
    return VowCreated(vow=vow, xp=xp)


def get_vow(db: Session, vow_id: int) -> Vow:
    vow = db.query(Vow).filter(Vow.id == vow_id).first()
    if vow is None:
        raise VowNotFoundError(vow_id=vow_id)
    return vow


def complete_day(
    db: Session,
    store: KeyValueStore,
    vow_id: int,
    now: Optional[datetime] = None,
) -> DayCompleted:
    now = as_utc(now or utc_now())
    today = now.date()
    vow = get_vow(db, vow_id)
    user = get_user(db, vow.user_id)
    require_access(user, now)

    if _ev(vow.status) != VowStatus.active.value:
        raise VowNotActiveError(vow_id=vow.id, vow_status=_ev(vow.status))
    if vow.last_completed_date == today:
        raise DayAlreadyCompletedError(vow_id=vow.id, day=today)

    if vow.last_completed_date is not None:
        gap = (today - vow.last_completed_date).days - 1
        if gap > 0:
            vow.current_streak = 0
            vow.days_breached = (vow.days_breached or 0) + gap

    vow.current_day = (vow.current_day or 0) + 1
    vow.current_streak = (vow.current_streak or 0) + 1
    vow.days_kept = (vow.days_kept or 0) + 1
    vow.longest_streak = max(vow.longest_streak or 0, vow.current_streak)
    vow.last_completed_date = today

    completed = vow.current_day >= vow.duration_days
    if completed:
        vow.current_day = vow.duration_days
        vow.status = VowStatus.completed

    record_activity(db, user.id, ActivityCategory.vow_completion, now, vow_id=vow.id)
    streak = user_streak(db, user, now).streak
    xp = grant_xp(db, store, user, "complete_vow" if completed else "complete_day", streak, now)
    db.commit()
    db.refresh(vow)
    logger.info(
        "day_completed",
        user_id=user.id,
        vow_id=vow.id,
        current_day=vow.current_day,
        current_streak=vow.current_streak,
        completed=completed,
    )
    return DayCompleted(vow=vow, xp=xp, completed=completed)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def streak_health(vow: Vow) -> int:
    """Current streak as a share of days elapsed, 0-100."""
    if not vow.current_streak:
        return 0
    elapsed = vow.current_day or 1
    return min(round_half_up(vow.current_streak / elapsed * 100), 100)


def encouragement_message(vow: Vow) -> str:
    streak = vow.current_streak or 0
    if streak == 0:
        return "Every journey begins with a single step. 🌱"
    if streak == 1:
        return "You've taken the first step! Keep going. 💪"
    if 7 <= streak < 14:
        return "One week strong! You're building momentum. 🔥"
    if 14 <= streak < 30:
        return "Two weeks! This is becoming part of who you are. ✨"
    if streak >= 30:
        return "A full month! You're transforming. 🌟"
    return "You're doing great! Keep honoring your vow. 🙏"
