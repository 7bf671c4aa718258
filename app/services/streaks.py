"""
Streak & grace calculator.

Streak with grace
-----------------
Walk backward one calendar day at a time from `today` (at most
MAX_LOOKBACK_DAYS iterations):

  * day has activity  -> streak += 1, consecutive misses reset to 0
  * day is missing    -> consecutive misses += 1; if misses <= max_grace AND
                         grace_used < max_grace the day is absorbed
                         (grace_used += 1, streak unchanged) and the walk
                         continues; otherwise the walk stops.

max_grace comes from GRACE_PERIODS by tier. The global grace_used cap wins
over the per-run miss check.

The result is recomputed from the full activity-date set every time, so
there is no stored streak counter to go stale.

Recovery
--------
A broken streak can be bought back with XP: not on trial, at most 3 missed
days, and fewer than the tier's lifetime token cap used. Each token costs
more than the last (100, 250, 500, then 1000). An unaffordable recovery
returns a failure result and changes nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from app.core.clock import as_utc, utc_now, utc_today
from app.services.features import Tier
from app.services.snapshots import AccountSnapshot


GRACE_PERIODS: dict[str, int] = {
    Tier.trial.value: 0,
    Tier.initiation.value: 1,
    Tier.reflection.value: 2,
    Tier.liberation.value: 3,
}

# Cost in XP of the n-th recovery token; the last entry applies to all later ones.
RECOVERY_COSTS: dict[int, int] = {1: 100, 2: 250, 3: 500, 4: 1000}

MAX_LOOKBACK_DAYS = 365
MAX_RECOVERABLE_MISSED_DAYS = 3
AT_RISK_HOURS = 18

DateLike = Union[date, datetime, str, None]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class StreakState:
    streak: int
    grace_used: int


@dataclass
class GraceStatus:
    has_grace: bool
    days_remaining: int
    message: str


@dataclass
class RecoveryResult:
    success: bool
    cost: int
    current_xp: int
    error: Optional[str] = None
    new_streak: Optional[int] = None
    xp_spent: Optional[int] = None
    new_xp: Optional[int] = None
    tokens_used: Optional[int] = None


@dataclass
class StreakValue:
    emoji: str
    label: str
    color: str


@dataclass
class ProtectionMessage:
    title: str
    message: str
    action: Optional[str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tier_of(account: AccountSnapshot) -> str:
    return account.subscription_tier or Tier.trial.value


def max_grace_for(tier: Optional[str]) -> int:
    return GRACE_PERIODS.get(tier or Tier.trial.value, 0)


def _to_day(value: DateLike) -> Optional[date]:
    """Calendar day for a date, datetime or ISO string; None when unusable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None


def normalize_activity_days(dates: Optional[Iterable[DateLike]]) -> set[date]:
    """Deduplicate to calendar days, silently dropping malformed values."""
    if not dates:
        return set()
    days = set()
    for value in dates:
        day = _to_day(value)
        if day is not None:
            days.add(day)
    return days


# ---------------------------------------------------------------------------
# Core: streak walk
# ---------------------------------------------------------------------------

def calculate_streak_with_grace(
    dates: Optional[Iterable[DateLike]],
    tier: Optional[str],
    today: Optional[date] = None,
) -> StreakState:
    active_days = normalize_activity_days(dates)
    if not active_days:
        return StreakState(streak=0, grace_used=0)

    max_grace = max_grace_for(tier)
    current = today or utc_today()

    streak = 0
    grace_used = 0
    consecutive_misses = 0

    for _ in range(MAX_LOOKBACK_DAYS):
        if current in active_days:
            streak += 1
            consecutive_misses = 0
        else:
            consecutive_misses += 1
            if consecutive_misses <= max_grace and grace_used < max_grace:
                grace_used += 1
            else:
                break
        current -= timedelta(days=1)

    return StreakState(streak=streak, grace_used=grace_used)


def days_missed_since(last_activity: Optional[date], today: Optional[date] = None) -> int:
    """Whole days without activity between the last active day and today."""
    if last_activity is None:
        return 0
    return max(((today or utc_today()) - last_activity).days - 1, 0)


# ---------------------------------------------------------------------------
# Grace
# ---------------------------------------------------------------------------

def has_grace_period(account: AccountSnapshot, missed_days: int) -> bool:
    return missed_days <= max_grace_for(_tier_of(account))


def get_grace_status(
    account: AccountSnapshot,
    last_activity: datetime,
    now: Optional[datetime] = None,
) -> GraceStatus:
    max_grace = max_grace_for(_tier_of(account))
    if max_grace == 0:
        return GraceStatus(
            has_grace=False,
            days_remaining=0,
            message="Upgrade to unlock grace periods",
        )

    elapsed = as_utc(now or utc_now()) - as_utc(last_activity)
    days_since_activity = elapsed // timedelta(days=1)
    remaining = max(max_grace - days_since_activity, 0)

    if remaining > 0:
        message = f"{remaining} grace {'day' if remaining == 1 else 'days'} remaining"
    else:
        message = "Grace period expired"
    return GraceStatus(has_grace=remaining > 0, days_remaining=remaining, message=message)


def is_streak_at_risk(last_activity: datetime, now: Optional[datetime] = None) -> bool:
    elapsed = as_utc(now or utc_now()) - as_utc(last_activity)
    return elapsed >= timedelta(hours=AT_RISK_HOURS)


def get_streak_protection_message(account: AccountSnapshot, streak: int) -> ProtectionMessage:
    grace_days = max_grace_for(_tier_of(account))
    if grace_days == 0:
        return ProtectionMessage(
            title="Protect Your Streak",
            message=f"Your {streak}-day streak is valuable. Upgrade to unlock grace periods.",
            action="Upgrade Now",
        )
    return ProtectionMessage(
        title="Grace Period Active",
        message=f"You have {grace_days} {'day' if grace_days == 1 else 'days'} of grace if you miss a day.",
        action=None,
    )


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

def max_recovery_tokens(tier: Optional[str]) -> int:
    return 5 if tier == Tier.liberation.value else 3


def can_recover_streak(account: AccountSnapshot, days_missed: int) -> bool:
    tier = _tier_of(account)
    if days_missed > MAX_RECOVERABLE_MISSED_DAYS:
        return False
    if tier == Tier.trial.value:
        return False
    return (account.recovery_tokens_used or 0) < max_recovery_tokens(tier)


def get_recovery_cost(account: AccountSnapshot) -> int:
    next_token = (account.recovery_tokens_used or 0) + 1
    return RECOVERY_COSTS.get(next_token, RECOVERY_COSTS[4])


def recover_streak(account: AccountSnapshot, current_streak: int) -> RecoveryResult:
    """Price a recovery against the account's XP. Never mutates the account."""
    cost = get_recovery_cost(account)
    user_xp = account.total_xp or 0

    if user_xp < cost:
        return RecoveryResult(
            success=False,
            error="Not enough XP",
            cost=cost,
            current_xp=user_xp,
        )

    return RecoveryResult(
        success=True,
        cost=cost,
        current_xp=user_xp,
        new_streak=current_streak,
        xp_spent=cost,
        new_xp=user_xp - cost,
        tokens_used=(account.recovery_tokens_used or 0) + 1,
    )


def get_recovery_tokens_remaining(account: AccountSnapshot) -> int:
    used = account.recovery_tokens_used or 0
    return max(max_recovery_tokens(_tier_of(account)) - used, 0)


def should_reset_tokens(account: AccountSnapshot, now: Optional[datetime] = None) -> bool:
    """True once the calendar month has changed since the last reset."""
    reference = account.last_token_reset or account.created_at
    if reference is None:
        return True
    last = as_utc(reference)
    current = as_utc(now or utc_now())
    return (last.year, last.month) != (current.year, current.month)


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def get_streak_value(streak: int) -> StreakValue:
    if streak >= 365:
        return StreakValue("🏆", "Legendary", "#FFD700")
    if streak >= 90:
        return StreakValue("🔥", "On Fire", "#FF4500")
    if streak >= 30:
        return StreakValue("⚡", "Strong", "#FFA500")
    if streak >= 7:
        return StreakValue("✨", "Building", "#C6A664")
    return StreakValue("🌱", "Starting", "#90EE90")


def get_streak_insights(streak: int, grace_days: int) -> list[str]:
    insights = []
    if streak == 0:
        insights.append("Start your streak today by completing a reflection")
    if streak >= 7:
        insights.append("You're building consistency - the foundation of change")
    if streak >= 30:
        insights.append("30 days of remembrance - neural pathways are forming")
    if grace_days > 0 and streak > 7:
        insights.append(f"Your {grace_days}-day grace period protects your progress")
    return insights
