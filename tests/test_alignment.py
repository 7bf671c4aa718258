"""
Unit tests for the count-based and ratio-based alignment scores.
"""
from datetime import datetime, timedelta, timezone

from hypothesis import given, strategies as st

from app.services.alignment import (
    AdherenceTotals,
    alignment_from_activity,
    count_based_alignment,
    count_recent_reflections,
    embodiment_message,
    ratio_based_alignment,
)
from app.services.snapshots import VowSnapshot

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class TestCountBased:
    def test_maximum(self):
        assert count_based_alignment(3, 5, 10) == 100

    def test_components_are_capped(self):
        assert count_based_alignment(10, 50, 400) == 100

    def test_zero(self):
        assert count_based_alignment(0, 0, 0) == 0

    def test_partial(self):
        assert count_based_alignment(1, 1, 1) == 27
        assert count_based_alignment(2, 0, 4) == 48

    @given(
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=0, max_value=1000),
    )
    def test_always_within_bounds(self, vows, reflections, streak):
        assert 0 <= count_based_alignment(vows, reflections, streak) <= 100

    def test_recent_reflections_window(self):
        times = [
            NOW - timedelta(hours=1),
            NOW - timedelta(days=7),
            NOW - timedelta(days=7, seconds=1),
            NOW - timedelta(days=30),
        ]
        assert count_recent_reflections(times, NOW) == 2

    def test_from_activity_uses_active_vows_and_max_streak(self):
        vows = [
            VowSnapshot(id=1, status="active", duration_days=30, current_streak=4),
            VowSnapshot(id=2, status="completed", duration_days=7, current_streak=7),
            VowSnapshot(id=3, status="active", duration_days=30, current_streak=1),
        ]
        reflections = [NOW - timedelta(days=1), NOW - timedelta(days=2)]
        # 2 active * 20 + 2 * 5 + min(7 * 2, 20)
        assert alignment_from_activity(vows, reflections, NOW) == 64


class TestRatioBased:
    def test_formula(self):
        totals = AdherenceTotals(total_days=10, days_kept=5, reflection_count=5, trigger_log_count=20)
        assert ratio_based_alignment(totals) == 60

    def test_no_days(self):
        assert ratio_based_alignment(AdherenceTotals()) == 0

    def test_rounding_half_up(self):
        # 1/8 * 60 = 7.5
        assert ratio_based_alignment(AdherenceTotals(total_days=8, days_kept=1)) == 8

    def test_differs_from_count_based(self):
        totals = AdherenceTotals(total_days=30, days_kept=30, reflection_count=0, trigger_log_count=0)
        assert ratio_based_alignment(totals) == 60
        assert count_based_alignment(1, 0, 30) == 40


class TestEmbodimentMessage:
    def test_thresholds(self):
        assert embodiment_message(100).startswith("You are your promise.")
        assert embodiment_message(90).startswith("You are your promise.")
        assert embodiment_message(89).startswith("You are becoming your vow.")
        assert embodiment_message(70).startswith("You are becoming your vow.")
        assert embodiment_message(50).startswith("You are on the path.")
        assert embodiment_message(30).startswith("Remember: this is not about perfection")
        assert embodiment_message(29).startswith("Every moment is a new beginning.")
        assert embodiment_message(0).startswith("Every moment is a new beginning.")
