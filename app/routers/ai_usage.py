"""
AI usage & preferences router.

GET  /users/{user_id}/ai-usage/{feature}  — Today's usage against the daily limit
POST /users/{user_id}/ai-usage/{feature}  — Record one use (429 once the limit is hit)
GET  /users/{user_id}/preferences         — Preferences with defaults applied
PUT  /users/{user_id}/preferences         — Update some preferences
"""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import AIUsageLimitReachedError
from app.core.logging import get_logger
from app.db.base import get_db
from app.schemas.ai_usage import AIUsageResponse, PreferencesResponse, PreferencesUpdate
from app.schemas.common import ErrorResponse
from app.services.accounts import get_user
from app.services.ai_usage import (
    DAILY_AI_LIMITS,
    AIFeature,
    AIUsageTracker,
    load_preferences,
    save_preferences,
    usage_message,
)
from app.services.kv_store import KeyValueStore, get_kv_store

router = APIRouter(prefix="/users", tags=["ai-usage"])
logger = get_logger(__name__)


def _usage_response(tracker: AIUsageTracker, user_id: int, feature: AIFeature) -> AIUsageResponse:
    remaining = tracker.remaining(user_id, feature)
    return AIUsageResponse(
        feature=feature.value,
        used=tracker.used(user_id, feature),
        limit=DAILY_AI_LIMITS[feature],
        remaining=remaining,
        can_use=remaining > 0,
        message=usage_message(feature, remaining),
    )


@router.get(
    "/{user_id}/ai-usage/{feature}",
    response_model=AIUsageResponse,
    summary="AI usage today",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_ai_usage(
    user_id: int,
    feature: AIFeature,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    """Daily limits: reflection 3, vow 1. Counters roll over at 00:00 UTC."""
    get_user(db, user_id)
    return _usage_response(AIUsageTracker(store), user_id, feature)


@router.post(
    "/{user_id}/ai-usage/{feature}",
    response_model=AIUsageResponse,
    summary="Record one AI use",
    responses={
        404: {"model": ErrorResponse, "description": "User not found."},
        429: {"model": ErrorResponse, "description": "Daily AI limit reached."},
    },
)
def track_ai_usage(
    user_id: int,
    feature: AIFeature,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    get_user(db, user_id)
    tracker = AIUsageTracker(store)
    if not tracker.can_use(user_id, feature):
        raise AIUsageLimitReachedError(feature=feature.value, message=usage_message(feature, 0))
    count = tracker.track(user_id, feature)
    db.commit()
    logger.info("ai_usage_tracked", user_id=user_id, feature=feature.value, count=count)
    return _usage_response(tracker, user_id, feature)


@router.get(
    "/{user_id}/preferences",
    response_model=PreferencesResponse,
    summary="User preferences",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_preferences(
    user_id: int,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    get_user(db, user_id)
    return PreferencesResponse(**asdict(load_preferences(store, user_id)))


@router.put(
    "/{user_id}/preferences",
    response_model=PreferencesResponse,
    summary="Update user preferences",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def update_preferences(
    user_id: int,
    payload: PreferencesUpdate,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    get_user(db, user_id)
    prefs = save_preferences(store, user_id, payload.model_dump(exclude_none=True))
    db.commit()
    return PreferencesResponse(**asdict(prefs))
