"""
Tier / feature table — which subscription tier unlocks which feature.

Tiers are ordered:  trial < initiation < reflection < liberation

A tier has access to a feature when its position in that order is at or
above the feature's minimum tier. Unknown features and unknown tiers never
have access (fail closed).

Feature keys are a closed enumeration shared with the UI layer. Adding a
feature means adding a `Feature` member, a `FEATURES` entry, and a UI gate.

Trial helpers in this module use *floor* day arithmetic on the account's
creation time (hard expiry boundary); the countdown shown to users lives in
`app.services.access` and uses *ceil* on the trial end date. The two are
kept apart on purpose.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from app.core.clock import as_utc, utc_now
from app.services.snapshots import AccountSnapshot


class Tier(str, enum.Enum):
    trial = "trial"
    initiation = "initiation"
    reflection = "reflection"
    liberation = "liberation"


TIER_ORDER: list[Tier] = [Tier.trial, Tier.initiation, Tier.reflection, Tier.liberation]

TRIAL_DAYS = 2


class Feature(str, enum.Enum):
    # Trial
    basic_vows = "basic_vows"
    daily_reflection = "daily_reflection"
    trigger_logging = "trigger_logging"
    basic_dashboard = "basic_dashboard"
    # Initiation
    unlimited_vows = "unlimited_vows"
    emotion_tracking = "emotion_tracking"
    basic_analytics = "basic_analytics"
    streak_tracking = "streak_tracking"
    # Reflection
    ai_insights = "ai_insights"
    pattern_recognition = "pattern_recognition"
    advanced_analytics = "advanced_analytics"
    voice_journaling = "voice_journaling"
    weekly_summaries = "weekly_summaries"
    # Liberation
    ai_mentor = "ai_mentor"
    community_access = "community_access"
    video_journaling = "video_journaling"
    export_data = "export_data"
    priority_support = "priority_support"


@dataclass(frozen=True)
class TierInfo:
    name: str
    price: Optional[float]
    features: tuple[str, ...]
    days: Optional[int] = None


@dataclass(frozen=True)
class FeatureInfo:
    name: str
    min_tier: Tier
    limit: Optional[int] = None


TIERS: dict[Tier, TierInfo] = {
    Tier.trial: TierInfo(
        name="Trial",
        price=None,
        days=TRIAL_DAYS,
        features=("basic_vows", "daily_reflection", "trigger_logging", "basic_dashboard"),
    ),
    Tier.initiation: TierInfo(
        name="Initiation",
        price=4.99,
        features=(
            "unlimited_vows", "daily_reflection", "trigger_logging",
            "emotion_tracking", "basic_analytics", "streak_tracking",
        ),
    ),
    Tier.reflection: TierInfo(
        name="Reflection",
        price=9.99,
        features=(
            "all_initiation", "ai_insights", "pattern_recognition",
            "advanced_analytics", "voice_journaling", "weekly_summaries",
        ),
    ),
    Tier.liberation: TierInfo(
        name="Liberation",
        price=14.99,
        features=(
            "all_reflection", "ai_mentor", "community_access",
            "video_journaling", "export_data", "priority_support",
        ),
    ),
}

# Marker entries in TierInfo.features meaning "everything from the tier below".
_INHERIT_MARKERS = {"all_initiation", "all_reflection"}

FEATURES: dict[Feature, FeatureInfo] = {
    Feature.basic_vows:         FeatureInfo("Create Vows", Tier.trial, limit=3),
    Feature.daily_reflection:   FeatureInfo("Daily Reflection", Tier.trial),
    Feature.trigger_logging:    FeatureInfo("Log Triggers", Tier.trial, limit=10),
    Feature.basic_dashboard:    FeatureInfo("Dashboard", Tier.trial),

    Feature.unlimited_vows:     FeatureInfo("Unlimited Vows", Tier.initiation),
    Feature.emotion_tracking:   FeatureInfo("Emotion Tracking", Tier.initiation),
    Feature.basic_analytics:    FeatureInfo("Basic Analytics", Tier.initiation),
    Feature.streak_tracking:    FeatureInfo("Streak Tracking", Tier.initiation),

    Feature.ai_insights:        FeatureInfo("AI Insights", Tier.reflection),
    Feature.pattern_recognition: FeatureInfo("Pattern Recognition", Tier.reflection),
    Feature.advanced_analytics: FeatureInfo("Advanced Analytics", Tier.reflection),
    Feature.voice_journaling:   FeatureInfo("Voice Journaling", Tier.reflection),
    Feature.weekly_summaries:   FeatureInfo("Weekly Summaries", Tier.reflection),

    Feature.ai_mentor:          FeatureInfo("AI Mentor", Tier.liberation),
    Feature.community_access:   FeatureInfo("Community Access", Tier.liberation),
    Feature.video_journaling:   FeatureInfo("Video Journaling", Tier.liberation),
    Feature.export_data:        FeatureInfo("Export Data", Tier.liberation),
    Feature.priority_support:   FeatureInfo("Priority Support", Tier.liberation),
}

TierLike = Union[Tier, str, None]
FeatureLike = Union[Feature, str]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def coerce_tier(tier: TierLike) -> Optional[Tier]:
    """Return the Tier for a name, or None when unknown."""
    if isinstance(tier, Tier):
        return tier
    try:
        return Tier(tier)
    except ValueError:
        return None


def coerce_feature(key: FeatureLike) -> Optional[Feature]:
    if isinstance(key, Feature):
        return key
    try:
        return Feature(key)
    except ValueError:
        return None


def tier_rank(tier: TierLike) -> int:
    """Position in TIER_ORDER; -1 for unknown tiers."""
    t = coerce_tier(tier)
    return TIER_ORDER.index(t) if t is not None else -1


# ---------------------------------------------------------------------------
# Table lookups
# ---------------------------------------------------------------------------

def has_feature_access(tier: TierLike, feature_key: FeatureLike) -> bool:
    feature = coerce_feature(feature_key)
    if feature is None:
        return False
    user_rank = tier_rank(tier)
    if user_rank < 0:
        return False
    return user_rank >= tier_rank(FEATURES[feature].min_tier)


def get_feature_limit(tier: TierLike, feature_key: FeatureLike) -> Optional[int]:
    """None means unlimited. 0 means the tier cannot use the feature at all."""
    feature = coerce_feature(feature_key)
    if feature is None or not FEATURES[feature].limit:
        return None
    if not has_feature_access(tier, feature):
        return 0
    return FEATURES[feature].limit


def is_within_limit(tier: TierLike, feature_key: FeatureLike, current_usage: int) -> bool:
    limit = get_feature_limit(tier, feature_key)
    if limit is None:
        return True
    return current_usage < limit


def get_upgrade_message(feature_key: FeatureLike) -> str:
    feature = coerce_feature(feature_key)
    if feature is None:
        return "Upgrade to unlock this feature"
    info = FEATURES[feature]
    return f"Upgrade to {TIERS[info.min_tier].name} to unlock {info.name}"


@dataclass
class TierComparison:
    current_tier: str
    target_tier: str
    price: Optional[float]
    new_features: list[str]


def get_tier_comparison(current: TierLike, target: TierLike) -> Optional[TierComparison]:
    """Display names of features listed for `target` that `current` does not list."""
    current_tier, target_tier = coerce_tier(current), coerce_tier(target)
    if current_tier is None or target_tier is None:
        return None
    current_info, target_info = TIERS[current_tier], TIERS[target_tier]

    new_features: list[str] = []
    for key in target_info.features:
        if key in current_info.features or key in _INHERIT_MARKERS:
            continue
        feature = coerce_feature(key)
        if feature is not None:
            new_features.append(FEATURES[feature].name)

    return TierComparison(
        current_tier=current_info.name,
        target_tier=target_info.name,
        price=target_info.price,
        new_features=new_features,
    )


# ---------------------------------------------------------------------------
# Account-level helpers (floor arithmetic on creation time)
# ---------------------------------------------------------------------------

def is_on_trial(account: Optional[AccountSnapshot]) -> bool:
    if account is None:
        return False
    return account.subscription_tier == Tier.trial.value or account.subscription_status == "trial"


def _days_since_creation(account: AccountSnapshot, now: datetime) -> int:
    if account.created_at is None:
        # No creation time: treat as created long ago so the trial is over.
        return TRIAL_DAYS + 1
    return (as_utc(now) - as_utc(account.created_at)) // timedelta(days=1)


def is_trial_expired(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> bool:
    if not is_on_trial(account):
        return False
    return _days_since_creation(account, now or utc_now()) > TRIAL_DAYS


def get_trial_days_remaining(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> int:
    if not is_on_trial(account):
        return 0
    return max(TRIAL_DAYS - _days_since_creation(account, now or utc_now()), 0)


def has_active_subscription(account: Optional[AccountSnapshot]) -> bool:
    if account is None:
        return False
    return account.subscription_status == "active" and account.subscription_tier != Tier.trial.value


def get_user_tier(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> Optional[Tier]:
    """Effective tier. None when the trial is over and nothing was bought."""
    if account is None:
        return Tier.trial
    if is_trial_expired(account, now) and not has_active_subscription(account):
        return None
    if not account.subscription_tier:
        return Tier.trial
    return coerce_tier(account.subscription_tier)


def get_available_features(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> list[Feature]:
    tier = get_user_tier(account, now)
    if tier is None:
        return []
    return [f for f in FEATURES if has_feature_access(tier, f)]


def get_locked_features(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> list[Feature]:
    tier = get_user_tier(account, now)
    if tier is None:
        return list(FEATURES)
    return [f for f in FEATURES if not has_feature_access(tier, f)]


def should_show_upgrade_prompt(account: Optional[AccountSnapshot], now: Optional[datetime] = None) -> bool:
    if has_active_subscription(account):
        return False
    if is_trial_expired(account, now):
        return True
    # Last day of the trial
    return get_trial_days_remaining(account, now) <= 1
