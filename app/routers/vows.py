"""
Vows router.

POST /vows                      — Create a vow
GET  /vows/{vow_id}             — Vow by ID
POST /vows/{vow_id}/complete-day — Mark today kept
POST /vows/analyze              — Language / structure feedback on vow text
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.db.base import get_db
from app.models.vow import Vow
from app.schemas.common import ErrorResponse, ValidationErrorResponse
from app.schemas.vows import (
    CompleteDayResponse,
    LanguageScanResponse,
    StructureResponse,
    SuggestionResponse,
    VowAnalysisResponse,
    VowAnalyzeRequest,
    VowCreateRequest,
    VowResponse,
    XPAwardResponse,
)
from app.services.kv_store import KeyValueStore, get_kv_store
from app.services.progress import XPGrant
from app.services.vow_language import analyze_vow
from app.services.vow_statement import parse_vow_statement
from app.services.vows import complete_day, create_vow, encouragement_message, get_vow, streak_health

router = APIRouter(prefix="/vows", tags=["vows"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def xp_to_response(grant: XPGrant) -> XPAwardResponse:
    return XPAwardResponse(
        awarded=grant.awarded,
        total_xp=grant.total_xp,
        today_xp=grant.today_xp,
        daily_cap=grant.daily_cap,
        leveled_up=grant.level_up.leveled_up,
        new_level=grant.level_up.new_level,
        title=grant.level_up.title,
    )


def _vow_to_response(vow: Vow, xp: Optional[XPGrant] = None) -> VowResponse:
    return VowResponse(
        id=vow.id,
        user_id=vow.user_id,
        identity=vow.identity,
        boundary=vow.boundary,
        statement=vow.statement,
        duration_days=vow.duration_days,
        current_day=vow.current_day,
        current_streak=vow.current_streak,
        longest_streak=vow.longest_streak,
        days_kept=vow.days_kept,
        days_breached=vow.days_breached,
        status=vow.status.value if hasattr(vow.status, "value") else str(vow.status),
        last_completed_date=str(vow.last_completed_date) if vow.last_completed_date else None,
        streak_health=streak_health(vow),
        encouragement=encouragement_message(vow),
        created_at=as_utc(vow.created_at).isoformat() if vow.created_at else "",
        xp=xp_to_response(xp) if xp is not None else None,
    )


# ---------------------------------------------------------------------------
# POST /vows/analyze
# ---------------------------------------------------------------------------

@router.post(
    "/analyze",
    response_model=VowAnalysisResponse,
    summary="Analyze vow wording",
)
def analyze(payload: VowAnalyzeRequest):
    """
    Pure text analysis, nothing is stored.

    - **combat** — conflict vocabulary (fight, resist, ...) with a severity.
    - **remembrance** — awareness vocabulary (remember, notice, ...).
    - **structure** — how closely the text follows
      *"I am the type of person that ...; therefore, I will never/always ..."* (score 0-3).
    - **suggestions** — word-level reframes plus one general reframe when combat words appear.
    """
    analysis = analyze_vow(payload.text)
    parsed = parse_vow_statement(payload.text.strip())
    return VowAnalysisResponse(
        combat=LanguageScanResponse(**asdict(analysis.combat)),
        remembrance=LanguageScanResponse(**asdict(analysis.remembrance)),
        structure=StructureResponse(**asdict(analysis.structure)),
        suggestions=[SuggestionResponse(**asdict(s)) for s in analysis.suggestions],
        parsed_identity=parsed.identity if parsed else None,
        parsed_boundary=parsed.boundary if parsed else None,
    )


# ---------------------------------------------------------------------------
# POST /vows
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=VowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a vow",
    responses={
        201: {"description": "Vow created."},
        403: {"model": ErrorResponse, "description": "No access, or the trial vow limit is reached."},
        404: {"model": ErrorResponse, "description": "User not found."},
        422: {"model": ValidationErrorResponse, "description": "Validation error."},
    },
)
def create(
    payload: VowCreateRequest,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    """
    Builds the statement *"I'm the type of person that {identity}; therefore, I will {boundary}."*

    Trial accounts may hold up to 3 active vows. Awards `create_vow` XP.
    """
    result = create_vow(
        db=db,
        store=store,
        user_id=payload.user_id,
        identity=payload.identity,
        boundary=payload.boundary,
        duration_days=payload.duration_days,
    )
    return _vow_to_response(result.vow, result.xp)


# ---------------------------------------------------------------------------
# GET /vows/{vow_id}
# ---------------------------------------------------------------------------

@router.get(
    "/{vow_id}",
    response_model=VowResponse,
    summary="Retrieve a vow",
    responses={404: {"model": ErrorResponse, "description": "Vow not found."}},
)
def read_vow(vow_id: int, db: Session = Depends(get_db)):
    return _vow_to_response(get_vow(db, vow_id))


# ---------------------------------------------------------------------------
# POST /vows/{vow_id}/complete-day
# ---------------------------------------------------------------------------

@router.post(
    "/{vow_id}/complete-day",
    response_model=CompleteDayResponse,
    summary="Mark today as kept",
    responses={
        404: {"model": ErrorResponse, "description": "Vow not found."},
        409: {"model": ErrorResponse, "description": "Already completed today, or vow not active."},
    },
)
def complete(
    vow_id: int,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
):
    """
    Increments `current_day`, `current_streak` and `days_kept`.
    A gap since the last completion resets the streak and counts the missed
    days as breached. Reaching `duration_days` completes the vow.
    """
    result = complete_day(db=db, store=store, vow_id=vow_id)
    return CompleteDayResponse(
        vow=_vow_to_response(result.vow),
        completed=result.completed,
        xp=xp_to_response(result.xp),
    )
