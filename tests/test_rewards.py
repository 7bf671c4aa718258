"""
Unit tests for XP, levels and daily caps.
"""
import pytest

from app.core.numbers import round_half_up
from app.models.vow import Vow
from app.services.rewards import (
    award_xp,
    calculate_level,
    calculate_streak_bonus,
    cap_award,
    check_level_up,
    get_daily_xp_cap,
    get_level_up_reward,
    get_xp_for_next_level,
    get_xp_with_streak,
    has_reached_daily_cap,
)
from app.services.vows import streak_health


class TestLevels:
    @pytest.mark.parametrize("xp,level,title", [
        (0, 1, "Awakening"),
        (99, 1, "Awakening"),
        (100, 2, "Observer"),
        (250, 3, "Seeker"),
        (11999, 9, "Transformed"),
        (12000, 10, "Liberated"),
    ])
    def test_calculate_level(self, xp, level, title):
        lvl = calculate_level(xp)
        assert (lvl.level, lvl.title) == (level, title)

    def test_next_level_progress(self):
        p = get_xp_for_next_level(50)
        assert (p.current, p.required, p.remaining, p.percentage) == (50, 100, 50, 50)

    def test_no_next_level_at_top(self):
        assert get_xp_for_next_level(20000) is None

    def test_level_up(self):
        up = check_level_up(90, 110)
        assert up.leveled_up is True
        assert (up.old_level, up.new_level, up.title) == (1, 2, "Observer")
        assert up.reward["name"] == "First Steps"

    def test_no_level_up(self):
        assert check_level_up(110, 120).leveled_up is False

    def test_default_reward(self):
        assert get_level_up_reward(4)["type"] == "xp"


class TestXP:
    def test_base_values(self):
        assert award_xp("create_vow") == 50
        assert award_xp("complete_day") == 25
        assert award_xp("unknown_action") == 0

    @pytest.mark.parametrize("streak,bonus", [(0, 1.0), (6, 1.0), (7, 1.5), (30, 2.0), (90, 3.0)])
    def test_streak_bonus(self, streak, bonus):
        assert calculate_streak_bonus(streak) == bonus

    def test_xp_with_streak(self):
        assert get_xp_with_streak("daily_reflection", 30) == 50
        assert get_xp_with_streak("log_trigger", 90) == 45

    def test_half_xp_rounds_up(self):
        # 15 * 1.5 = 22.5 and 25 * 1.5 = 37.5
        assert get_xp_with_streak("log_trigger", 7) == 23
        assert get_xp_with_streak("daily_reflection", 7) == 38


class TestRounding:
    @pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (22.5, 23), (-2.5, -2), (2.49, 2)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_streak_health_rounds_half_up(self):
        assert streak_health(Vow(current_streak=1, current_day=8)) == 13


class TestDailyCap:
    def test_caps_by_tier(self):
        assert get_daily_xp_cap("trial") == 100
        assert get_daily_xp_cap("liberation") == 1000
        assert get_daily_xp_cap(None) == 100
        assert get_daily_xp_cap("platinum") == 100

    def test_cap_award(self):
        assert cap_award("trial", 90, 25) == 10
        assert cap_award("trial", 100, 25) == 0
        assert cap_award("initiation", 0, 1000) == 250

    def test_has_reached_daily_cap(self):
        assert has_reached_daily_cap("trial", 99) is False
        assert has_reached_daily_cap("trial", 100) is True
