"""
Streak router.

GET  /users/{user_id}/streak           — Streak with grace, risk and recovery info
POST /users/{user_id}/streak/recover   — Spend XP to bridge missed days
"""
from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.schemas.common import ErrorResponse
from app.schemas.streaks import (
    GraceStatusResponse,
    ProtectionMessageResponse,
    RecoveryResponse,
    StreakResponse,
    StreakValueResponse,
)
from app.services.progress import apply_streak_recovery, streak_overview

router = APIRouter(prefix="/users", tags=["streaks"])


@router.get(
    "/{user_id}/streak",
    response_model=StreakResponse,
    summary="Current streak with grace periods",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_streak(user_id: int, db: Session = Depends(get_db)):
    """
    Recomputed from every activity day on each call.

    Grace days by tier: trial 0, initiation 1, reflection 2, liberation 3.
    A missed day inside the grace allowance keeps the streak alive without
    adding to it.
    """
    o = streak_overview(db, user_id)
    return StreakResponse(
        streak=o.state.streak,
        grace_used=o.state.grace_used,
        tier=o.tier,
        max_grace=o.max_grace,
        last_activity=o.last_activity.isoformat() if o.last_activity else None,
        days_missed=o.days_missed,
        at_risk=o.at_risk,
        grace=GraceStatusResponse(**asdict(o.grace)) if o.grace else None,
        protection=ProtectionMessageResponse(**asdict(o.protection)),
        can_recover=o.can_recover,
        recovery_cost=o.recovery_cost,
        tokens_remaining=o.tokens_remaining,
        value=StreakValueResponse(**asdict(o.value)),
        insights=o.insights,
    )


@router.post(
    "/{user_id}/streak/recover",
    response_model=RecoveryResponse,
    summary="Recover a broken streak with XP",
    responses={
        200: {"description": "Recovery applied: XP spent and token used."},
        403: {"model": ErrorResponse, "description": "Recovery not allowed (trial, >3 missed days, no tokens)."},
        404: {"model": ErrorResponse, "description": "User not found."},
        409: {"model": ErrorResponse, "description": "Not enough XP. Nothing is changed."},
    },
)
def recover(user_id: int, db: Session = Depends(get_db)):
    """
    Token costs rise with each use: 100, 250, 500, then 1000 XP.
    Paid tiers only, at most 3 missed days, 3 tokens per month (5 on liberation).
    """
    result = apply_streak_recovery(db, user_id)
    return RecoveryResponse(
        success=result.success,
        cost=result.cost,
        xp_spent=result.xp_spent,
        new_xp=result.new_xp,
        tokens_used=result.tokens_used,
        new_streak=result.new_streak,
    )
