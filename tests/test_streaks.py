"""
Unit tests for the streak & grace calculator and streak recovery pricing.
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from hypothesis import given, strategies as st

from app.services.snapshots import AccountSnapshot
from app.services.streaks import (
    GRACE_PERIODS,
    calculate_streak_with_grace,
    can_recover_streak,
    days_missed_since,
    get_grace_status,
    get_recovery_cost,
    get_recovery_tokens_remaining,
    get_streak_insights,
    get_streak_protection_message,
    get_streak_value,
    has_grace_period,
    is_streak_at_risk,
    recover_streak,
    should_reset_tokens,
)

TODAY = date(2026, 3, 15)
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _days(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=o) for o in offsets]


def _account(tier: str = "initiation", tokens: int = 0, xp: int = 0) -> AccountSnapshot:
    return AccountSnapshot(
        id=1,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        subscription_status="active" if tier != "trial" else "trial",
        subscription_tier=tier,
        recovery_tokens_used=tokens,
        total_xp=xp,
        last_token_reset=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


# ---------------------------------------------------------------------------
# Streak walk
# ---------------------------------------------------------------------------

class TestStreakWithGrace:
    def test_three_consecutive_days_on_trial(self):
        s = calculate_streak_with_grace(_days(0, 1, 2), "trial", TODAY)
        assert (s.streak, s.grace_used) == (3, 0)

    def test_one_gap_absorbed_on_initiation(self):
        # today counts, yesterday is absorbed by the single grace day,
        # today-2 counts, today-3 ends the walk.
        s = calculate_streak_with_grace(_days(0, 2), "initiation", TODAY)
        assert (s.streak, s.grace_used) == (2, 1)

    def test_grace_is_not_renewed_after_activity(self):
        s = calculate_streak_with_grace(_days(0, 2, 4), "initiation", TODAY)
        assert (s.streak, s.grace_used) == (2, 1)

    def test_trial_stops_at_first_gap(self):
        s = calculate_streak_with_grace(_days(0, 2), "trial", TODAY)
        assert (s.streak, s.grace_used) == (1, 0)

    def test_reflection_absorbs_two_consecutive_misses(self):
        s = calculate_streak_with_grace(_days(0, 3), "reflection", TODAY)
        assert (s.streak, s.grace_used) == (2, 2)

    def test_missing_today_is_absorbed_by_grace(self):
        s = calculate_streak_with_grace(_days(1, 2, 3), "liberation", TODAY)
        assert s.streak == 3
        assert s.grace_used >= 1

    def test_no_activity_today_on_trial(self):
        s = calculate_streak_with_grace(_days(1, 2), "trial", TODAY)
        assert (s.streak, s.grace_used) == (0, 0)

    def test_empty_and_none(self):
        assert calculate_streak_with_grace([], "liberation", TODAY).streak == 0
        assert calculate_streak_with_grace(None, "liberation", TODAY).streak == 0

    def test_malformed_dates_are_ignored(self):
        s = calculate_streak_with_grace(["not-a-date", None, "", 42], "trial", TODAY)
        assert (s.streak, s.grace_used) == (0, 0)

    def test_mixed_inputs_deduplicate_to_days(self):
        dates = [
            TODAY,
            datetime(2026, 3, 15, 22, 30, tzinfo=timezone.utc),
            "2026-03-14",
            "2026-03-13T08:00:00Z",
        ]
        s = calculate_streak_with_grace(dates, "trial", TODAY)
        assert (s.streak, s.grace_used) == (3, 0)

    def test_unknown_tier_gets_no_grace(self):
        s = calculate_streak_with_grace(_days(0, 2), "platinum", TODAY)
        assert (s.streak, s.grace_used) == (1, 0)

    def test_lookback_is_bounded(self):
        dates = [TODAY - timedelta(days=i) for i in range(500)]
        assert calculate_streak_with_grace(dates, "trial", TODAY).streak == 365

    @given(
        st.sets(st.integers(min_value=0, max_value=60), max_size=40),
        st.sampled_from(list(GRACE_PERIODS)),
    )
    def test_bounds(self, offsets, tier):
        s = calculate_streak_with_grace(_days(*offsets), tier, TODAY)
        assert 0 <= s.streak <= len(offsets)
        assert 0 <= s.grace_used <= GRACE_PERIODS[tier]


class TestGrace:
    def test_has_grace_period(self):
        assert has_grace_period(_account("reflection"), 2) is True
        assert has_grace_period(_account("reflection"), 3) is False
        assert has_grace_period(_account("trial"), 1) is False

    def test_grace_status_trial(self):
        g = get_grace_status(_account("trial"), NOW - timedelta(hours=2), NOW)
        assert g.has_grace is False
        assert g.message == "Upgrade to unlock grace periods"

    def test_grace_status_remaining(self):
        g = get_grace_status(_account("reflection"), NOW - timedelta(days=1, hours=3), NOW)
        assert g.has_grace is True
        assert g.days_remaining == 1
        assert g.message == "1 grace day remaining"

    def test_grace_status_expired(self):
        g = get_grace_status(_account("initiation"), NOW - timedelta(days=2), NOW)
        assert g.has_grace is False
        assert g.message == "Grace period expired"

    def test_at_risk_after_eighteen_hours(self):
        assert is_streak_at_risk(NOW - timedelta(hours=17, minutes=59), NOW) is False
        assert is_streak_at_risk(NOW - timedelta(hours=18), NOW) is True

    def test_protection_message(self):
        assert get_streak_protection_message(_account("trial"), 5).action == "Upgrade Now"
        msg = get_streak_protection_message(_account("reflection"), 5)
        assert msg.action is None
        assert "2 days of grace" in msg.message

    def test_days_missed_since(self):
        assert days_missed_since(TODAY, TODAY) == 0
        assert days_missed_since(TODAY - timedelta(days=1), TODAY) == 0
        assert days_missed_since(TODAY - timedelta(days=4), TODAY) == 3
        assert days_missed_since(None, TODAY) == 0


# ---------------------------------------------------------------------------
# Recovery
# ---------------------------------------------------------------------------

class TestRecovery:
    @pytest.mark.parametrize("used,cost", [(0, 100), (1, 250), (2, 500), (3, 1000), (4, 1000), (9, 1000)])
    def test_escalating_costs(self, used, cost):
        assert get_recovery_cost(_account("liberation", tokens=used)) == cost

    def test_trial_cannot_recover(self):
        assert can_recover_streak(_account("trial"), 1) is False

    def test_missed_day_window(self):
        assert can_recover_streak(_account("initiation"), 3) is True
        assert can_recover_streak(_account("initiation"), 4) is False

    def test_token_caps(self):
        assert can_recover_streak(_account("initiation", tokens=3), 1) is False
        assert can_recover_streak(_account("liberation", tokens=3), 1) is True
        assert can_recover_streak(_account("liberation", tokens=5), 1) is False

    def test_tokens_remaining(self):
        assert get_recovery_tokens_remaining(_account("initiation", tokens=1)) == 2
        assert get_recovery_tokens_remaining(_account("liberation", tokens=7)) == 0

    def test_insufficient_xp_changes_nothing(self):
        account = _account("initiation", tokens=1, xp=200)
        result = recover_streak(account, 12)
        assert result.success is False
        assert result.error == "Not enough XP"
        assert result.cost == 250
        assert result.current_xp == 200
        assert account.total_xp == 200
        assert account.recovery_tokens_used == 1

    def test_successful_recovery(self):
        account = _account("initiation", tokens=0, xp=150)
        result = recover_streak(account, 12)
        assert result.success is True
        assert result.xp_spent == 100
        assert result.new_xp == 50
        assert result.tokens_used == 1
        assert result.new_streak == 12
        assert account.total_xp == 150

    def test_token_reset_on_month_change(self):
        account = _account()
        assert should_reset_tokens(account, datetime(2026, 3, 31, tzinfo=timezone.utc)) is False
        assert should_reset_tokens(account, datetime(2026, 4, 1, tzinfo=timezone.utc)) is True
        assert should_reset_tokens(account, datetime(2027, 3, 2, tzinfo=timezone.utc)) is True


class TestDisplay:
    def test_streak_value_bands(self):
        assert get_streak_value(0).label == "Starting"
        assert get_streak_value(7).label == "Building"
        assert get_streak_value(30).label == "Strong"
        assert get_streak_value(90).label == "On Fire"
        assert get_streak_value(365).label == "Legendary"

    def test_insights(self):
        assert get_streak_insights(0, 0) == ["Start your streak today by completing a reflection"]
        assert len(get_streak_insights(31, 2)) == 3
