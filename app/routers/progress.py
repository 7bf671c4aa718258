"""
Activity & progress router.

POST /users/{user_id}/reflections  — Log a daily reflection
POST /users/{user_id}/triggers     — Log an urge / trigger
GET  /users/{user_id}/progress     — Dashboard stats + count-based alignment
GET  /users/{user_id}/identity     — Before / becoming identity profile
GET  /users/{user_id}/rewards      — XP, level and today's cap
"""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.db.base import get_db
from app.routers.vows import xp_to_response
from app.schemas.common import ErrorResponse
from app.schemas.progress import (
    ActivityResponse,
    BecomingSelfResponse,
    BeforeSelfResponse,
    IdentityProfileResponse,
    JourneyResponse,
    MilestoneResponse,
    NextLevelResponse,
    PatternResponse,
    ProgressResponse,
    ReflectionRequest,
    RewardsResponse,
    TriggerRequest,
)
from app.services.alignment import embodiment_message
from app.services.kv_store import KeyValueStore, get_kv_store
from app.services.progress import (
    ActivityResult,
    activity_snapshot,
    identity_profile,
    log_reflection,
    log_trigger,
    progress_stats,
    rewards_summary,
)

router = APIRouter(prefix="/users", tags=["progress"])


def _activity_to_response(result: ActivityResult) -> ActivityResponse:
    row = result.activity
    snap = activity_snapshot(row)
    return ActivityResponse(
        id=row.id,
        user_id=row.user_id,
        vow_id=row.vow_id,
        category=snap.category,
        day=str(snap.day),
        occurred_at=snap.occurred_at.isoformat(),
        content=snap.content,
        emotions=snap.emotions,
        urge_intensity=snap.urge_intensity,
        location=snap.location,
        xp=xp_to_response(result.xp) if result.xp is not None else None,
    )


_ACTIVITY_RESPONSES = {
    403: {"model": ErrorResponse, "description": "No access, feature locked or limit reached."},
    404: {"model": ErrorResponse, "description": "User or vow not found."},
}


@router.post(
    "/{user_id}/reflections",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a daily reflection",
    responses=_ACTIVITY_RESPONSES,
)
def create_reflection(
    user_id: int,
    payload: ReflectionRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    """Counts toward the streak and awards `daily_reflection` XP (streak multiplier, daily cap)."""
    result = log_reflection(db=db, store=store, user_id=user_id, content=payload.content, vow_id=payload.vow_id)
    return _activity_to_response(result)


@router.post(
    "/{user_id}/triggers",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log an urge or trigger",
    responses=_ACTIVITY_RESPONSES,
)
def create_trigger(
    user_id: int,
    payload: TriggerRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    """
    Trial accounts may log 10 triggers. Emotion labels need the
    `emotion_tracking` feature (initiation and above).
    """
    result = log_trigger(
        db=db,
        store=store,
        user_id=user_id,
        emotions=payload.emotions,
        urge_intensity=payload.urge_intensity,
        location=payload.location,
        content=payload.content,
        vow_id=payload.vow_id,
    )
    return _activity_to_response(result)


@router.get(
    "/{user_id}/progress",
    response_model=ProgressResponse,
    summary="Progress dashboard",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_progress(user_id: int, db: Session = Depends(get_db)):
    """
    Alignment score (0-100):
    `min(active_vows*20, 60) + min(reflections_last_7d*5, 20) + min(max_streak*2, 20)`.
    """
    return ProgressResponse(**asdict(progress_stats(db, user_id)))


@router.get(
    "/{user_id}/identity",
    response_model=IdentityProfileResponse,
    summary="Identity profile: who you were, who you are becoming",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_identity(user_id: int, db: Session = Depends(get_db)):
    """
    Keyword-based traits and strengths, trigger patterns, growth metrics
    and milestones. The alignment score here is adherence-ratio based.
    """
    p = identity_profile(db, user_id)
    return IdentityProfileResponse(
        before_self=BeforeSelfResponse(
            traits=p.before_self.traits,
            patterns=[PatternResponse(**asdict(x)) for x in p.before_self.patterns],
            trigger_points=[PatternResponse(**asdict(x)) for x in p.before_self.trigger_points],
        ),
        becoming_self=BecomingSelfResponse(
            strengths=p.becoming_self.strengths,
            growth=[PatternResponse(**asdict(x)) for x in p.becoming_self.growth],
            alignment_score=p.becoming_self.alignment_score,
        ),
        journey=JourneyResponse(
            start_date=as_utc(p.journey.start_date).isoformat() if p.journey.start_date else None,
            days_active=p.journey.days_active,
            milestones=[
                MilestoneResponse(
                    type=m.type,
                    date=as_utc(m.date).isoformat() if m.date else None,
                    description=m.description,
                )
                for m in p.journey.milestones
            ],
        ),
        message=embodiment_message(p.becoming_self.alignment_score),
    )


@router.get(
    "/{user_id}/rewards",
    response_model=RewardsResponse,
    summary="XP and level",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_rewards(
    user_id: int,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    s = rewards_summary(db, store, user_id)
    return RewardsResponse(
        total_xp=s.total_xp,
        level=s.level,
        title=s.title,
        next_level=NextLevelResponse(**asdict(s.next_level)) if s.next_level else None,
        streak=s.streak,
        streak_multiplier=s.streak_multiplier,
        today_xp=s.today_xp,
        daily_cap=s.daily_cap,
    )
