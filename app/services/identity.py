"""
Identity profile — "who I was" vs "who I am becoming".

Built from a user's vow history (each vow with its reflections and trigger
logs). Keyword matching only; no model calls.

The becoming-self alignment score uses the ratio-based formula from
`app.services.alignment`, not the count-based dashboard score.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.core.clock import as_utc, utc_now
from app.core.numbers import round_half_up
from app.services.alignment import AdherenceTotals, ratio_based_alignment
from app.services.snapshots import ActivitySnapshot, VowSnapshot

BEFORE_KEYWORDS = ["struggled", "failed", "weak", "tempted", "forgot", "gave in", "lost"]
BECOMING_KEYWORDS = ["strong", "remembered", "overcame", "aware", "mindful", "committed"]
STRENGTH_KEYWORDS = [
    "overcame", "resisted", "strong", "proud", "aware",
    "mindful", "controlled", "chose", "remembered", "honored",
]

MAX_KEYWORDS = 5
HIGH_INTENSITY_THRESHOLD = 7
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class VowHistory:
    vow: VowSnapshot
    total_days: int
    reflections: list[ActivitySnapshot] = field(default_factory=list)
    trigger_logs: list[ActivitySnapshot] = field(default_factory=list)


@dataclass
class Pattern:
    type: str
    value: Optional[str] = None
    count: Optional[int] = None
    description: Optional[str] = None


@dataclass
class Milestone:
    type: str
    date: Optional[datetime]
    description: str


@dataclass
class BeforeSelf:
    traits: list[str] = field(default_factory=list)
    patterns: list[Pattern] = field(default_factory=list)
    trigger_points: list[Pattern] = field(default_factory=list)


@dataclass
class BecomingSelf:
    strengths: list[str] = field(default_factory=list)
    growth: list[Pattern] = field(default_factory=list)
    alignment_score: int = 0


@dataclass
class Journey:
    start_date: Optional[datetime] = None
    days_active: int = 0
    milestones: list[Milestone] = field(default_factory=list)


@dataclass
class IdentityProfile:
    before_self: BeforeSelf = field(default_factory=BeforeSelf)
    becoming_self: BecomingSelf = field(default_factory=BecomingSelf)
    journey: Journey = field(default_factory=Journey)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def _match_keywords(reflections: list[ActivitySnapshot], keywords: list[str]) -> list[str]:
    found: list[str] = []
    for reflection in reflections:
        text = (reflection.content or "").lower()
        for keyword in keywords:
            if keyword in text and keyword not in found:
                found.append(keyword)
    return found[:MAX_KEYWORDS]


def extract_traits(reflections: list[ActivitySnapshot], phase: str = "before") -> list[str]:
    keywords = BECOMING_KEYWORDS if phase == "becoming" else BEFORE_KEYWORDS
    return _match_keywords(reflections, keywords)


def extract_strengths(reflections: list[ActivitySnapshot]) -> list[str]:
    return _match_keywords(reflections, STRENGTH_KEYWORDS)


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------

def time_slot(hour: int) -> str:
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def analyze_trigger_patterns(triggers: list[ActivitySnapshot]) -> list[Pattern]:
    """Most common time of day plus the top three emotions."""
    if not triggers:
        return []

    slots = Counter(time_slot(as_utc(t.occurred_at).hour) for t in triggers)
    emotions = Counter(e for t in triggers for e in t.emotions)

    patterns = []
    top_slot = slots.most_common(1)
    if top_slot:
        value, count = top_slot[0]
        patterns.append(Pattern(type="time", value=value, count=count))
    for emotion, count in emotions.most_common(3):
        patterns.append(Pattern(type="emotion", value=emotion, count=count))
    return patterns


def identify_behavioral_patterns(triggers: list[ActivitySnapshot]) -> list[Pattern]:
    if len(triggers) < 3:
        return []

    patterns = []
    hours = Counter(as_utc(t.occurred_at).hour for t in triggers)
    recurring = [str(hour) for hour, count in hours.items() if count >= 3]
    if recurring:
        patterns.append(Pattern(
            type="recurring_time",
            description=f"Urges often occur around {', '.join(recurring)}:00",
        ))

    recent = triggers[-5:]
    avg_intensity = sum(t.urge_intensity or 0 for t in recent) / len(recent)
    if avg_intensity > HIGH_INTENSITY_THRESHOLD:
        patterns.append(Pattern(
            type="high_intensity",
            description="Recent urges have been particularly intense",
        ))
    return patterns


# ---------------------------------------------------------------------------
# Growth / journey
# ---------------------------------------------------------------------------

def _adherence(history: VowHistory) -> float:
    return (history.vow.days_kept or 0) / (history.total_days or 1)


def growth_metrics(histories: list[VowHistory]) -> list[Pattern]:
    if not histories:
        return []

    metrics = []
    half = math.ceil(len(histories) / 2)
    older, recent = histories[:half], histories[half:]

    old_adherence = sum(_adherence(h) for h in older) / len(older)
    if recent and old_adherence > 0:
        recent_adherence = sum(_adherence(h) for h in recent) / len(recent)
        improvement = (recent_adherence - old_adherence) / old_adherence * 100
        if improvement > 10:
            metrics.append(Pattern(
                type="adherence_improvement",
                value=f"{round_half_up(improvement)}% improvement in vow adherence",
            ))

    longest = max(h.vow.longest_streak or 0 for h in histories)
    if longest > 7:
        metrics.append(Pattern(type="streak", value=f"{longest}-day streak achieved"))
    return metrics


def days_active(histories: list[VowHistory], now: Optional[datetime] = None) -> int:
    if not histories or histories[0].vow.created_at is None:
        return 0
    elapsed = abs(as_utc(now or utc_now()) - as_utc(histories[0].vow.created_at))
    return math.ceil(elapsed / timedelta(days=1))


def identify_milestones(histories: list[VowHistory]) -> list[Milestone]:
    milestones = []
    if histories:
        milestones.append(Milestone("first_vow", histories[0].vow.created_at, "Your journey began"))

    first_week = next((h for h in histories if (h.vow.longest_streak or 0) >= 7), None)
    if first_week is not None:
        milestones.append(Milestone("first_week", first_week.vow.created_at, "First 7-day streak completed"))

    first_month = next((h for h in histories if (h.vow.longest_streak or 0) >= 30), None)
    if first_month is not None:
        milestones.append(Milestone("first_month", first_month.vow.created_at, "First 30-day streak completed"))
    return milestones


def adherence_totals(histories: list[VowHistory]) -> AdherenceTotals:
    return AdherenceTotals(
        total_days=sum(h.total_days for h in histories),
        days_kept=sum(h.vow.days_kept or 0 for h in histories),
        days_breached=sum(h.vow.days_breached or 0 for h in histories),
        reflection_count=sum(len(h.reflections) for h in histories),
        trigger_log_count=sum(len(h.trigger_logs) for h in histories),
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def _created_key(history: VowHistory) -> datetime:
    created = history.vow.created_at
    return as_utc(created) if created is not None else _EARLIEST


def generate_identity_profile(
    histories: list[VowHistory],
    now: Optional[datetime] = None,
) -> IdentityProfile:
    profile = IdentityProfile()
    if not histories:
        return profile

    ordered = sorted(histories, key=_created_key)
    with_reflections = [h for h in ordered if h.reflections]
    early = [r for h in with_reflections[:5] for r in h.reflections]
    late = [r for h in with_reflections[-5:] for r in h.reflections]
    all_triggers = [t for h in ordered for t in h.trigger_logs]

    profile.before_self.traits = extract_traits(early, "before")
    profile.before_self.trigger_points = analyze_trigger_patterns(all_triggers)
    profile.before_self.patterns = identify_behavioral_patterns(all_triggers)

    profile.becoming_self.strengths = extract_strengths(late)
    profile.becoming_self.growth = growth_metrics(ordered)
    profile.becoming_self.alignment_score = ratio_based_alignment(adherence_totals(ordered))

    profile.journey.start_date = ordered[0].vow.created_at
    profile.journey.days_active = days_active(ordered, now)
    profile.journey.milestones = identify_milestones(ordered)
    return profile
