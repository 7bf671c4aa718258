"""
AI usage limits and user preferences, both stored in an injected
KeyValueStore.

Usage counters are per user per UTC day:  key = "ai_<user_id>_<YYYY-MM-DD>"
value = {"reflection": n, "vow": m}
"""
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Optional

from app.core.clock import utc_today
from app.services.kv_store import KeyValueStore


class AIFeature(str, enum.Enum):
    reflection = "reflection"
    vow = "vow"


DAILY_AI_LIMITS: dict[AIFeature, int] = {
    AIFeature.reflection: 3,
    AIFeature.vow: 1,
}


def usage_key(user_id: int, day: date) -> str:
    return f"ai_{user_id}_{day.isoformat()}"


def usage_message(feature: AIFeature, remaining: int) -> str:
    if feature is AIFeature.reflection:
        if remaining > 0:
            return f"{remaining} AI insights remaining today"
        return "Daily AI limit reached. Beautiful work today! 🌙"
    if remaining > 0:
        return "AI guidance available"
    return "Review yesterday's guidance anytime 📿"


class AIUsageTracker:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _usage(self, user_id: int, day: date) -> dict[str, int]:
        stored = self.store.get(usage_key(user_id, day))
        return stored if isinstance(stored, dict) else {}

    def used(self, user_id: int, feature: AIFeature, day: Optional[date] = None) -> int:
        return int(self._usage(user_id, day or utc_today()).get(feature.value, 0))

    def remaining(self, user_id: int, feature: AIFeature, day: Optional[date] = None) -> int:
        return max(DAILY_AI_LIMITS[feature] - self.used(user_id, feature, day), 0)

    def can_use(self, user_id: int, feature: AIFeature, day: Optional[date] = None) -> bool:
        return self.used(user_id, feature, day) < DAILY_AI_LIMITS[feature]

    def track(self, user_id: int, feature: AIFeature, day: Optional[date] = None) -> int:
        """Record one use and return the new count for today."""
        day = day or utc_today()
        usage = self._usage(user_id, day)
        usage[feature.value] = int(usage.get(feature.value, 0)) + 1
        self.store.set(usage_key(user_id, day), usage)
        return usage[feature.value]


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

@dataclass
class UserPreferences:
    theme: str = "light"
    notifications: bool = True
    auto_save: bool = True
    sound_enabled: bool = False


def preferences_key(user_id: int) -> str:
    return f"prefs_{user_id}"


def load_preferences(store: KeyValueStore, user_id: int) -> UserPreferences:
    """Defaults overlaid with whatever known fields are stored."""
    stored = store.get(preferences_key(user_id))
    prefs = UserPreferences()
    if isinstance(stored, dict):
        for name in asdict(prefs):
            if name in stored:
                setattr(prefs, name, stored[name])
    return prefs


def save_preferences(store: KeyValueStore, user_id: int, updates: dict[str, Any]) -> UserPreferences:
    prefs = load_preferences(store, user_id)
    for name, value in updates.items():
        if hasattr(prefs, name) and value is not None:
            setattr(prefs, name, value)
    store.set(preferences_key(user_id), asdict(prefs))
    return prefs
