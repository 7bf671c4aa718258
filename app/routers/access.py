"""
Access router.

GET /users/{user_id}/access        — Trial / subscription access decision
GET /users/{user_id}/features      — Available and locked features
GET /features/{feature}/access     — Feature gate for a tier
"""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.clock import utc_now
from app.core.logging import log_context, get_logger
from app.db.base import get_db
from app.schemas.access import (
    AccessDecisionResponse,
    FeatureAccessResponse,
    TierComparisonResponse,
    UserFeaturesResponse,
)
from app.services.access import evaluate_access
from app.services.accounts import account_snapshot, find_user, get_user
from app.services.features import (
    TIER_ORDER,
    get_available_features,
    get_feature_limit,
    get_locked_features,
    get_tier_comparison,
    get_trial_days_remaining,
    get_upgrade_message,
    get_user_tier,
    has_feature_access,
    is_on_trial,
    is_trial_expired,
    should_show_upgrade_prompt,
    tier_rank,
)

router = APIRouter(tags=["access"])
logger = get_logger(__name__)


@router.get(
    "/users/{user_id}/access",
    response_model=AccessDecisionResponse,
    response_model_exclude_none=True,
    summary="May this account use the product right now?",
)
def read_access(user_id: int, db: Session = Depends(get_db)):
    """
    Evaluated fresh on every call. An unknown user is **not** a 404: the
    answer is `{"has_access": false, "reason": "NO_USER"}`.
    """
    user = find_user(db, user_id)
    decision = evaluate_access(account_snapshot(user) if user is not None else None)
    with log_context(user_id=user_id):
        logger.info("access_evaluated", has_access=decision.has_access, reason=decision.reason)
    return AccessDecisionResponse(**decision.to_dict())


@router.get(
    "/users/{user_id}/features",
    response_model=UserFeaturesResponse,
    summary="Features available to the account's effective tier",
)
def read_user_features(user_id: int, db: Session = Depends(get_db)):
    now = utc_now()
    account = account_snapshot(get_user(db, user_id))
    tier = get_user_tier(account, now)

    next_tier = None
    rank = tier_rank(tier) if tier is not None else 0
    if tier is not None and rank + 1 < len(TIER_ORDER):
        comparison = get_tier_comparison(tier, TIER_ORDER[rank + 1])
        if comparison is not None:
            next_tier = TierComparisonResponse(**asdict(comparison))

    return UserFeaturesResponse(
        tier=tier.value if tier is not None else None,
        on_trial=is_on_trial(account),
        trial_expired=is_trial_expired(account, now),
        trial_days_remaining=get_trial_days_remaining(account, now),
        available=[f.value for f in get_available_features(account, now)],
        locked=[f.value for f in get_locked_features(account, now)],
        show_upgrade_prompt=should_show_upgrade_prompt(account, now),
        next_tier=next_tier,
    )


@router.get(
    "/features/{feature}/access",
    response_model=FeatureAccessResponse,
    summary="Does a tier unlock a feature?",
)
def read_feature_access(
    feature: str,
    tier: str = Query(
        default="trial",
        description="Tier name: trial | initiation | reflection | liberation.",
        examples=["reflection"],
    ),
):
    """Unknown features and unknown tiers are answered with `has_access: false`."""
    allowed = has_feature_access(tier, feature)
    return FeatureAccessResponse(
        feature=feature,
        tier=tier,
        has_access=allowed,
        limit=get_feature_limit(tier, feature),
        upgrade_message=None if allowed else get_upgrade_message(feature),
    )
