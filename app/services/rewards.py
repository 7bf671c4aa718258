"""
Rewards — XP, levels and streak multipliers.

XP is awarded per action, multiplied by the streak bonus, and capped per
calendar day by subscription tier. Pure functions; the running daily total
is stored by the caller (see `app.services.progress`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.core.numbers import round_half_up


XP_VALUES: dict[str, int] = {
    "create_vow": 50,
    "daily_reflection": 25,
    "log_trigger": 15,
    "complete_week": 100,
    "complete_month": 500,
    "complete_vow": 1000,
    "streak_milestone_7": 200,
    "streak_milestone_30": 800,
    "streak_milestone_90": 2500,
    "first_integration": 150,
    "share_insight": 30,
    "help_community": 40,
}

# Completing a single vow day earns the same as a daily reflection.
XP_VALUES["complete_day"] = XP_VALUES["daily_reflection"]


@dataclass(frozen=True)
class Level:
    level: int
    xp_required: int
    title: str


LEVELS: list[Level] = [
    Level(1, 0, "Awakening"),
    Level(2, 100, "Observer"),
    Level(3, 250, "Seeker"),
    Level(4, 500, "Aware"),
    Level(5, 1000, "Integrated"),
    Level(6, 2000, "Remembering"),
    Level(7, 3500, "Grounded"),
    Level(8, 5500, "Aligned"),
    Level(9, 8000, "Transformed"),
    Level(10, 12000, "Liberated"),
]

DAILY_XP_CAPS: dict[str, int] = {
    "trial": 100,
    "initiation": 250,
    "reflection": 500,
    "liberation": 1000,
}

LEVEL_UP_REWARDS: dict[int, dict[str, str]] = {
    2: {"type": "badge", "name": "First Steps", "icon": "🌱"},
    3: {"type": "quote", "name": "Wisdom Unlocked", "icon": "📜"},
    5: {"type": "badge", "name": "Integration Seeker", "icon": "✨"},
    7: {"type": "theme", "name": "New Theme Unlocked", "icon": "🎨"},
    10: {"type": "badge", "name": "Master of Remembrance", "icon": "👑"},
}
_DEFAULT_REWARD = {"type": "xp", "name": "XP Bonus", "icon": "⭐"}


@dataclass
class NextLevelProgress:
    current: int
    required: int
    remaining: int
    percentage: int


@dataclass
class LevelUp:
    leveled_up: bool
    old_level: Optional[int] = None
    new_level: Optional[int] = None
    title: Optional[str] = None
    reward: Optional[dict[str, str]] = None


def calculate_level(xp: int) -> Level:
    for level in reversed(LEVELS):
        if xp >= level.xp_required:
            return level
    return LEVELS[0]


def get_xp_for_next_level(current_xp: int) -> Optional[NextLevelProgress]:
    """None once the top level is reached."""
    current = calculate_level(current_xp)
    following = next((l for l in LEVELS if l.level == current.level + 1), None)
    if following is None:
        return None
    return NextLevelProgress(
        current=current_xp,
        required=following.xp_required,
        remaining=following.xp_required - current_xp,
        percentage=round_half_up(current_xp / following.xp_required * 100),
    )


def award_xp(action: str, multiplier: float = 1.0) -> int:
    return round_half_up(XP_VALUES.get(action, 0) * multiplier)


def calculate_streak_bonus(streak: int) -> float:
    if streak >= 90:
        return 3.0
    if streak >= 30:
        return 2.0
    if streak >= 7:
        return 1.5
    return 1.0


def get_xp_with_streak(action: str, streak: int) -> int:
    return award_xp(action, calculate_streak_bonus(streak))


def get_level_up_reward(level: int) -> dict[str, str]:
    return LEVEL_UP_REWARDS.get(level, _DEFAULT_REWARD)


def check_level_up(old_xp: int, new_xp: int) -> LevelUp:
    old_level, new_level = calculate_level(old_xp), calculate_level(new_xp)
    if new_level.level <= old_level.level:
        return LevelUp(leveled_up=False)
    return LevelUp(
        leveled_up=True,
        old_level=old_level.level,
        new_level=new_level.level,
        title=new_level.title,
        reward=get_level_up_reward(new_level.level),
    )


def get_daily_xp_cap(tier: Optional[str]) -> int:
    return DAILY_XP_CAPS.get(tier or "trial", DAILY_XP_CAPS["trial"])


def has_reached_daily_cap(tier: Optional[str], today_xp: int) -> bool:
    return today_xp >= get_daily_xp_cap(tier)


def cap_award(tier: Optional[str], today_xp: int, amount: int) -> int:
    """Portion of `amount` that still fits under today's cap."""
    return max(min(amount, get_daily_xp_cap(tier) - today_xp), 0)
