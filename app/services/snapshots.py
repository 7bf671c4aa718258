"""
Input snapshots for the rules engine.

Plain dataclasses (no ORM, no Pydantic). Routers build them from database
rows; tests build them directly. Every rules function is a pure function of
these snapshots plus an explicit `now` / `today`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass
class AccountSnapshot:
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    # Opaque billing status reported by the payment processor.
    subscription_status: Optional[str] = None
    subscription_tier: Optional[str] = None
    trial_end_date: Optional[datetime] = None
    recovery_tokens_used: int = 0
    total_xp: int = 0
    last_token_reset: Optional[datetime] = None


@dataclass
class ActivitySnapshot:
    category: str            # "reflection" | "vow_completion" | "trigger_log" | "streak_recovery"
    occurred_at: datetime
    day: date
    vow_id: Optional[int] = None
    content: Optional[str] = None
    emotions: list[str] = field(default_factory=list)
    urge_intensity: Optional[int] = None
    location: Optional[str] = None


@dataclass
class VowSnapshot:
    id: Optional[int]
    status: str
    duration_days: int
    current_day: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    days_kept: int = 0
    days_breached: int = 0
    created_at: Optional[datetime] = None
