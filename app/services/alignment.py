"""
Alignment score — a 0–100 engagement number used for display and messaging.

Two formulas exist and serve different screens; they are intentionally
not interchangeable.

count_based_alignment   (progress dashboard)
    min(active_vows * 20, 60)
  + min(reflections in the last 7 days * 5, 20)
  + min(max current streak across vows * 2, 20)
  -> rounded, clamped to [0, 100]

ratio_based_alignment   (identity profile)
    days_kept / total_days * 60
  + min(reflections / total_days * 20, 20)
  + min(trigger_logs / total_days * 20, 20)
  -> rounded; 0 when total_days == 0
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from app.core.clock import as_utc, utc_now
from app.core.numbers import round_half_up
from app.services.snapshots import VowSnapshot

RECENT_REFLECTION_WINDOW = timedelta(days=7)

# (minimum score, message) — highest threshold first.
EMBODIMENT_MESSAGES: list[tuple[int, str]] = [
    (90, "You are your promise. The vow is no longer something you keep — it is who you are."),
    (70, "You are becoming your vow. Each day of remembrance strengthens your identity."),
    (50, "You are on the path. The journey of becoming requires patience and daily awareness."),
    (30, "Remember: this is not about perfection, but about conscious presence. You are learning."),
    (0,  "Every moment is a new beginning. The vow is not broken — your awareness is growing."),
]


# ---------------------------------------------------------------------------
# Count-based
# ---------------------------------------------------------------------------

def count_based_alignment(
    active_vow_count: int,
    recent_reflection_count: int,
    max_streak: int,
) -> int:
    score = (
        min(active_vow_count * 20, 60)
        + min(recent_reflection_count * 5, 20)
        + min(max_streak * 2, 20)
    )
    return max(0, min(round_half_up(score), 100))


def count_recent_reflections(
    reflection_times: Iterable[datetime],
    now: Optional[datetime] = None,
) -> int:
    current = as_utc(now or utc_now())
    return sum(
        1 for ts in reflection_times
        if current - as_utc(ts) <= RECENT_REFLECTION_WINDOW
    )


def alignment_from_activity(
    vows: list[VowSnapshot],
    reflection_times: Iterable[datetime],
    now: Optional[datetime] = None,
) -> int:
    """Count-based score straight from vow and reflection snapshots."""
    active = [v for v in vows if v.status == "active"]
    max_streak = max((v.current_streak or 0 for v in vows), default=0)
    return count_based_alignment(
        active_vow_count=len(active),
        recent_reflection_count=count_recent_reflections(reflection_times, now),
        max_streak=max_streak,
    )


# ---------------------------------------------------------------------------
# Ratio-based
# ---------------------------------------------------------------------------

@dataclass
class AdherenceTotals:
    total_days: int = 0
    days_kept: int = 0
    days_breached: int = 0
    reflection_count: int = 0
    trigger_log_count: int = 0


def ratio_based_alignment(totals: AdherenceTotals) -> int:
    if totals.total_days <= 0:
        return 0
    adherence = (totals.days_kept / totals.total_days) * 60
    reflection = min((totals.reflection_count / totals.total_days) * 20, 20)
    awareness = min((totals.trigger_log_count / totals.total_days) * 20, 20)
    return round_half_up(adherence + reflection + awareness)


# ---------------------------------------------------------------------------
# Messaging
# ---------------------------------------------------------------------------

def embodiment_message(score: int) -> str:
    for threshold, message in EMBODIMENT_MESSAGES:
        if score >= threshold:
            return message
    return EMBODIMENT_MESSAGES[-1][1]
