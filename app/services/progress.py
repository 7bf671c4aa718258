"""
Progress service — activity records, XP, streaks and the scored views built
on top of them.

Rules:
- The rules core (features, access, streaks, alignment, identity, rewards)
  stays pure; this module loads rows, turns them into snapshots and calls it.
- The user's streak is always recomputed from activity days.
- Daily XP totals live in the key-value store under "xp_<user_id>_<YYYY-MM-DD>".
- db.commit() only at the root function.

Public API
----------
log_reflection(db, store, user_id, content, vow_id, now)            -> ActivityResult
log_trigger(db, store, user_id, emotions, urge_intensity, ...)      -> ActivityResult
streak_overview(db, user_id, now)                                   -> StreakOverview
apply_streak_recovery(db, user_id, now)                             -> RecoveryResult
progress_stats(db, user_id, now)                                    -> ProgressStats
identity_profile(db, user_id, now)                                  -> IdentityProfile
rewards_summary(db, store, user_id, now)                            -> RewardsSummary
"""
from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import as_utc, utc_now
from app.core.errors import (
    FeatureLimitReachedError,
    FeatureLockedError,
    InsufficientXPError,
    RecoveryNotAllowedError,
    VowNotFoundError,
)
from app.core.logging import get_logger
from app.models.activity import Activity, ActivityCategory
from app.models.user import User
from app.models.vow import Vow, VowStatus
from app.services.accounts import account_snapshot, get_user, require_access
from app.services.alignment import alignment_from_activity, count_recent_reflections, embodiment_message
from app.services.features import (
    Feature,
    Tier,
    get_feature_limit,
    get_upgrade_message,
    get_user_tier,
    has_feature_access,
    is_within_limit,
)
from app.services.identity import IdentityProfile, VowHistory, generate_identity_profile
from app.services.kv_store import KeyValueStore
from app.services.rewards import (
    LevelUp,
    NextLevelProgress,
    calculate_level,
    calculate_streak_bonus,
    cap_award,
    check_level_up,
    get_daily_xp_cap,
    get_xp_for_next_level,
    get_xp_with_streak,
)
from app.services.snapshots import AccountSnapshot, ActivitySnapshot, VowSnapshot
from app.services.streaks import (
    GraceStatus,
    ProtectionMessage,
    RecoveryResult,
    StreakState,
    StreakValue,
    calculate_streak_with_grace,
    can_recover_streak,
    days_missed_since,
    get_grace_status,
    get_recovery_cost,
    get_recovery_tokens_remaining,
    get_streak_insights,
    get_streak_protection_message,
    get_streak_value,
    is_streak_at_risk,
    max_grace_for,
    recover_streak,
    should_reset_tokens,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class XPGrant:
    awarded: int
    total_xp: int
    today_xp: int
    daily_cap: int
    level_up: LevelUp


@dataclass
class ActivityResult:
    activity: Activity
    xp: Optional[XPGrant] = None


@dataclass
class StreakOverview:
    state: StreakState
    tier: Optional[str]
    max_grace: int
    last_activity: Optional[datetime]
    days_missed: int
    at_risk: bool
    grace: Optional[GraceStatus]
    protection: ProtectionMessage
    can_recover: bool
    recovery_cost: int
    tokens_remaining: int
    value: StreakValue
    insights: list[str]


@dataclass
class ProgressStats:
    total_vows: int
    active_vows: int
    completed_vows: int
    total_reflections: int
    recent_reflections: int
    trigger_logs: int
    current_streak: int
    longest_streak: int
    alignment_score: int
    message: str
    last_reflection_at: Optional[datetime] = None
    last_vow_at: Optional[datetime] = None


@dataclass
class RewardsSummary:
    total_xp: int
    level: int
    title: str
    next_level: Optional[NextLevelProgress]
    streak: int
    streak_multiplier: float
    today_xp: int
    daily_cap: int


# ---------------------------------------------------------------------------
# Tiny utilities
# ---------------------------------------------------------------------------

def _ev(v) -> str:
    """Return bare string value from a str-enum or plain str."""
    return v.value if hasattr(v, "value") else str(v)


def _jdump(items: list[str]) -> str:
    return json.dumps(items, ensure_ascii=False)


def _jload(text: Optional[str]) -> list[str]:
    if not text:
        return []
    try:
        result = json.loads(text)
        return result if isinstance(result, list) else []
    except (ValueError, TypeError):
        return []


def _tier_value(user: User, now: datetime) -> Optional[str]:
    tier = get_user_tier(account_snapshot(user), now)
    return tier.value if tier is not None else None


def xp_key(user_id: int, day: date) -> str:
    return f"xp_{user_id}_{day.isoformat()}"


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def activity_snapshot(row: Activity) -> ActivitySnapshot:
    return ActivitySnapshot(
        category=_ev(row.category),
        occurred_at=as_utc(row.occurred_at),
        day=row.day,
        vow_id=row.vow_id,
        content=row.content,
        emotions=_jload(row.emotions),
        urge_intensity=row.urge_intensity,
        location=row.location,
    )


def vow_snapshot(vow: Vow) -> VowSnapshot:
    return VowSnapshot(
        id=vow.id,
        status=_ev(vow.status),
        duration_days=vow.duration_days,
        current_day=vow.current_day or 0,
        current_streak=vow.current_streak or 0,
        longest_streak=vow.longest_streak or 0,
        days_kept=vow.days_kept or 0,
        days_breached=vow.days_breached or 0,
        created_at=as_utc(vow.created_at) if vow.created_at else None,
    )


# ---------------------------------------------------------------------------
# Activity queries
# ---------------------------------------------------------------------------

def _activities(db: Session, user_id: int, category: Optional[ActivityCategory] = None) -> list[Activity]:
    q = db.query(Activity).filter(Activity.user_id == user_id)
    if category is not None:
        q = q.filter(Activity.category == category)
    return q.order_by(Activity.occurred_at.asc(), Activity.id.asc()).all()


def activity_days(db: Session, user_id: int) -> list[date]:
    rows = db.query(Activity.day).filter(Activity.user_id == user_id).distinct().all()
    return [row[0] for row in rows]


def last_activity_at(db: Session, user_id: int) -> Optional[datetime]:
    row = (
        db.query(Activity)
        .filter(Activity.user_id == user_id)
        .order_by(Activity.occurred_at.desc())
        .first()
    )
    return as_utc(row.occurred_at) if row is not None else None


def user_streak(db: Session, user: User, now: datetime) -> StreakState:
    return calculate_streak_with_grace(
        activity_days(db, user.id),
        _tier_value(user, now),
        today=now.date(),
    )


def record_activity(
    db: Session,
    user_id: int,
    category: ActivityCategory,
    now: datetime,
    vow_id: Optional[int] = None,
    content: Optional[str] = None,
    emotions: Optional[list[str]] = None,
    urge_intensity: Optional[int] = None,
    location: Optional[str] = None,
    day: Optional[date] = None,
) -> Activity:
    """Add an activity row to the session. Caller commits."""
    activity = Activity(
        user_id=user_id,
        vow_id=vow_id,
        category=category,
        day=day or now.date(),
        occurred_at=now,
        content=content,
        emotions=_jdump(emotions) if emotions else None,
        urge_intensity=urge_intensity,
        location=location,
    )
    db.add(activity)
    db.flush()
    return activity


# ---------------------------------------------------------------------------
# XP
# ---------------------------------------------------------------------------

def grant_xp(
    db: Session,
    store: KeyValueStore,
    user: User,
    action: str,
    streak: int,
    now: datetime,
) -> XPGrant:
    """
    Award XP for `action` with the streak multiplier, clipped to what is left
    of today's tier cap. Caller commits.
    """
    tier = _tier_value(user, now)
    key = xp_key(user.id, now.date())
    today_xp = int(store.get(key) or 0)

    amount = cap_award(tier, today_xp, get_xp_with_streak(action, streak))
    old_xp = user.total_xp or 0
    if amount > 0:
        user.total_xp = old_xp + amount
        today_xp += amount
        store.set(key, today_xp)

    level_up = check_level_up(old_xp, user.total_xp or 0)
    if level_up.leveled_up:
        logger.info(
            "level_up",
            user_id=user.id,
            old_level=level_up.old_level,
            new_level=level_up.new_level,
        )
    return XPGrant(
        awarded=amount,
        total_xp=user.total_xp or 0,
        today_xp=today_xp,
        daily_cap=get_daily_xp_cap(tier),
        level_up=level_up,
    )


# ---------------------------------------------------------------------------
# Reflections / triggers
# ---------------------------------------------------------------------------

def _check_vow_owner(db: Session, user_id: int, vow_id: Optional[int]) -> None:
    if vow_id is None:
        return
    vow = db.query(Vow).filter(Vow.id == vow_id, Vow.user_id == user_id).first()
    if vow is None:
        raise VowNotFoundError(vow_id=vow_id)


def log_reflection(
    db: Session,
    store: KeyValueStore,
    user_id: int,
    content: str,
    vow_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ActivityResult:
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)
    require_access(user, now)
    _check_vow_owner(db, user_id, vow_id)

    activity = record_activity(
        db, user_id, ActivityCategory.reflection, now, vow_id=vow_id, content=content,
    )
    streak = user_streak(db, user, now)
    xp = grant_xp(db, store, user, "daily_reflection", streak.streak, now)
    db.commit()
    db.refresh(activity)
    logger.info("reflection_logged", user_id=user_id, vow_id=vow_id, xp_awarded=xp.awarded)
    return ActivityResult(activity=activity, xp=xp)


def log_trigger(
    db: Session,
    store: KeyValueStore,
    user_id: int,
    emotions: Optional[list[str]] = None,
    urge_intensity: Optional[int] = None,
    location: Optional[str] = None,
    content: Optional[str] = None,
    vow_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ActivityResult:
    """
    Trial accounts may log up to the trigger_logging limit in total.
    Emotions require the emotion_tracking feature.
    """
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)
    require_access(user, now)
    _check_vow_owner(db, user_id, vow_id)
    tier = _tier_value(user, now)

    if emotions and not has_feature_access(tier, Feature.emotion_tracking):
        raise FeatureLockedError(
            feature=Feature.emotion_tracking.value,
            message=get_upgrade_message(Feature.emotion_tracking),
        )

    if tier == Tier.trial.value:
        logged = (
            db.query(Activity)
            .filter(Activity.user_id == user_id, Activity.category == ActivityCategory.trigger_log)
            .count()
        )
        if not is_within_limit(tier, Feature.trigger_logging, logged):
            raise FeatureLimitReachedError(
                feature=Feature.trigger_logging.value,
                limit=get_feature_limit(tier, Feature.trigger_logging),
            )

    activity = record_activity(
        db, user_id, ActivityCategory.trigger_log, now,
        vow_id=vow_id,
        content=content,
        emotions=emotions,
        urge_intensity=urge_intensity,
        location=location,
    )
    streak = user_streak(db, user, now)
    xp = grant_xp(db, store, user, "log_trigger", streak.streak, now)
    db.commit()
    db.refresh(activity)
    logger.info("trigger_logged", user_id=user_id, vow_id=vow_id, urge_intensity=urge_intensity)
    return ActivityResult(activity=activity, xp=xp)


# ---------------------------------------------------------------------------
# Streak
# ---------------------------------------------------------------------------

def streak_overview(db: Session, user_id: int, now: Optional[datetime] = None) -> StreakOverview:
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)
    account = _current_month_account(user, now)
    tier = _tier_value(user, now)

    state = user_streak(db, user, now)
    days = activity_days(db, user_id)
    last_day = max(days) if days else None
    last_at = last_activity_at(db, user_id)
    days_missed = days_missed_since(last_day, now.date())

    return StreakOverview(
        state=state,
        tier=tier,
        max_grace=max_grace_for(tier),
        last_activity=last_at,
        days_missed=days_missed,
        at_risk=is_streak_at_risk(last_at, now) if last_at is not None else False,
        grace=get_grace_status(account, last_at, now) if last_at is not None else None,
        protection=get_streak_protection_message(account, state.streak),
        can_recover=days_missed > 0 and can_recover_streak(account, days_missed),
        recovery_cost=get_recovery_cost(account),
        tokens_remaining=get_recovery_tokens_remaining(account),
        value=get_streak_value(state.streak),
        insights=get_streak_insights(state.streak, max_grace_for(tier)),
    )


def _current_month_account(user: User, now: datetime) -> AccountSnapshot:
    """Snapshot with the monthly token rollover applied, without writing it."""
    account = account_snapshot(user)
    if should_reset_tokens(account, now):
        account = replace(account, recovery_tokens_used=0, last_token_reset=now)
    return account


def apply_streak_recovery(db: Session, user_id: int, now: Optional[datetime] = None) -> RecoveryResult:
    """
    Spend XP to bridge the missed days since the last activity.

    On success the missed days are recorded as streak_recovery activity, XP
    is deducted and the token count is incremented, in one commit. Any
    refusal raises before anything is written.
    """
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)

    if should_reset_tokens(account_snapshot(user), now):
        user.recovery_tokens_used = 0
        user.last_token_reset = now

    account = account_snapshot(user)
    days = activity_days(db, user_id)
    last_day = max(days) if days else None
    days_missed = days_missed_since(last_day, now.date())

    if last_day is None or days_missed == 0 or not can_recover_streak(account, days_missed):
        db.rollback()
        raise RecoveryNotAllowedError(
            days_missed=days_missed,
            tokens_remaining=get_recovery_tokens_remaining(account),
        )

    tier = _tier_value(user, now)
    protected = calculate_streak_with_grace(days, tier, today=last_day).streak
    result = recover_streak(account, protected)
    if not result.success:
        db.rollback()
        raise InsufficientXPError(cost=result.cost, current_xp=result.current_xp)

    for offset in range(1, days_missed + 1):
        record_activity(
            db, user_id, ActivityCategory.streak_recovery, now,
            day=last_day + timedelta(days=offset),
        )
    user.total_xp = result.new_xp
    user.recovery_tokens_used = result.tokens_used
    db.commit()

    new_streak = calculate_streak_with_grace(activity_days(db, user_id), tier, today=now.date()).streak
    logger.info(
        "streak_recovered",
        user_id=user_id,
        days_missed=days_missed,
        xp_spent=result.xp_spent,
        tokens_used=result.tokens_used,
        new_streak=new_streak,
    )
    return replace(result, new_streak=new_streak)


# ---------------------------------------------------------------------------
# Progress / identity / rewards
# ---------------------------------------------------------------------------

def _user_vows(db: Session, user_id: int) -> list[Vow]:
    return (
        db.query(Vow)
        .filter(Vow.user_id == user_id)
        .order_by(Vow.created_at.asc(), Vow.id.asc())
        .all()
    )


def progress_stats(db: Session, user_id: int, now: Optional[datetime] = None) -> ProgressStats:
    now = as_utc(now or utc_now())
    get_user(db, user_id)

    vows = [vow_snapshot(v) for v in _user_vows(db, user_id)]
    reflections = _activities(db, user_id, ActivityCategory.reflection)
    reflection_times = [as_utc(r.occurred_at) for r in reflections]
    trigger_count = (
        db.query(Activity)
        .filter(Activity.user_id == user_id, Activity.category == ActivityCategory.trigger_log)
        .count()
    )

    score = alignment_from_activity(vows, reflection_times, now)
    return ProgressStats(
        total_vows=len(vows),
        active_vows=sum(1 for v in vows if v.status == VowStatus.active.value),
        completed_vows=sum(1 for v in vows if v.status == VowStatus.completed.value),
        total_reflections=len(reflections),
        recent_reflections=count_recent_reflections(reflection_times, now),
        trigger_logs=trigger_count,
        current_streak=max((v.current_streak for v in vows if v.status == VowStatus.active.value), default=0),
        longest_streak=max((v.longest_streak for v in vows), default=0),
        alignment_score=score,
        message=embodiment_message(score),
        last_reflection_at=max(reflection_times, default=None),
        last_vow_at=max((as_utc(v.created_at) for v in vows if v.created_at is not None), default=None),
    )


def vow_histories(db: Session, user_id: int, now: Optional[datetime] = None) -> list[VowHistory]:
    """
    One history per vow. total_days is the number of calendar days the vow
    has been running, capped at its duration.
    """
    now = as_utc(now or utc_now())
    activities = [activity_snapshot(a) for a in _activities(db, user_id)]

    histories = []
    for vow in _user_vows(db, user_id):
        snap = vow_snapshot(vow)
        elapsed = (now.date() - snap.created_at.date()).days + 1 if snap.created_at else 1
        histories.append(VowHistory(
            vow=snap,
            total_days=max(min(snap.duration_days, elapsed), 1),
            reflections=[
                a for a in activities
                if a.vow_id == vow.id and a.category == ActivityCategory.reflection.value
            ],
            trigger_logs=[
                a for a in activities
                if a.vow_id == vow.id and a.category == ActivityCategory.trigger_log.value
            ],
        ))
    return histories


def identity_profile(db: Session, user_id: int, now: Optional[datetime] = None) -> IdentityProfile:
    now = as_utc(now or utc_now())
    get_user(db, user_id)
    return generate_identity_profile(vow_histories(db, user_id, now), now)


def rewards_summary(
    db: Session,
    store: KeyValueStore,
    user_id: int,
    now: Optional[datetime] = None,
) -> RewardsSummary:
    now = as_utc(now or utc_now())
    user = get_user(db, user_id)
    total = user.total_xp or 0
    level = calculate_level(total)
    streak = user_streak(db, user, now).streak
    return RewardsSummary(
        total_xp=total,
        level=level.level,
        title=level.title,
        next_level=get_xp_for_next_level(total),
        streak=streak,
        streak_multiplier=calculate_streak_bonus(streak),
        today_xp=int(store.get(xp_key(user_id, now.date())) or 0),
        daily_cap=get_daily_xp_cap(_tier_value(user, now)),
    )
