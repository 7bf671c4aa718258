"""
Unit tests for the trial / access evaluator.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.services.access import AccessReason, evaluate_access, trial_end_for
from app.services.snapshots import AccountSnapshot

CREATED = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _account(status: str, **kwargs) -> AccountSnapshot:
    defaults = dict(
        id=1,
        created_at=CREATED,
        subscription_status=status,
        subscription_tier="trial",
        trial_end_date=CREATED + timedelta(days=2),
    )
    defaults.update(kwargs)
    return AccountSnapshot(**defaults)


class TestTrialWindow:
    def test_access_just_before_one_day(self):
        d = evaluate_access(_account("trial"), CREATED + timedelta(hours=23, minutes=59))
        assert d.has_access is True
        assert d.is_trial is True

    def test_no_access_just_after_trial_end(self):
        d = evaluate_access(_account("trial"), CREATED + timedelta(hours=48, minutes=1))
        assert d.has_access is False
        assert d.reason == AccessReason.TRIAL_EXPIRED

    def test_no_access_exactly_at_trial_end(self):
        d = evaluate_access(_account("trial"), CREATED + timedelta(days=2))
        assert d.has_access is False

    def test_days_left_rounds_up(self):
        assert evaluate_access(_account("trial"), CREATED + timedelta(hours=1)).days_left == 2
        assert evaluate_access(_account("trial"), CREATED + timedelta(hours=47)).days_left == 1

    def test_naive_datetimes_are_utc(self):
        account = _account(
            "trial",
            created_at=CREATED.replace(tzinfo=None),
            trial_end_date=(CREATED + timedelta(days=2)).replace(tzinfo=None),
        )
        assert evaluate_access(account, CREATED + timedelta(hours=5)).has_access is True

    def test_missing_trial_end_falls_back_to_creation(self):
        account = _account("trial", trial_end_date=None)
        assert trial_end_for(account) == CREATED + timedelta(days=2)
        assert evaluate_access(account, CREATED + timedelta(hours=30)).has_access is True
        assert evaluate_access(account, CREATED + timedelta(hours=49)).has_access is False

    def test_no_dates_at_all_denies(self):
        account = _account("trial", trial_end_date=None, created_at=None)
        d = evaluate_access(account, CREATED)
        assert d.has_access is False
        assert d.reason == AccessReason.TRIAL_EXPIRED


class TestDecisionTable:
    def test_no_user(self):
        d = evaluate_access(None, CREATED)
        assert d.has_access is False
        assert d.reason == AccessReason.NO_USER
        assert d.message

    def test_active_is_paid(self):
        d = evaluate_access(_account("active", subscription_tier="initiation"), CREATED + timedelta(days=90))
        assert d.has_access is True
        assert d.is_paid is True
        assert d.to_dict() == {"has_access": True, "is_paid": True}

    @pytest.mark.parametrize("status", ["cancelled", "canceled"])
    def test_cancelled_spellings(self, status):
        d = evaluate_access(_account(status), CREATED + timedelta(hours=1))
        assert d.has_access is False
        assert d.reason == AccessReason.SUBSCRIPTION_CANCELLED

    @pytest.mark.parametrize("status", ["past_due", "unpaid", "incomplete", "expired", "", "ACTIVE"])
    def test_unrecognized_status_fails_closed(self, status):
        d = evaluate_access(_account(status), CREATED + timedelta(hours=1))
        assert d.has_access is False
        assert d.reason == AccessReason.UNKNOWN_STATUS

    def test_to_dict_drops_unset_fields(self):
        d = evaluate_access(None, CREATED).to_dict()
        assert set(d) == {"has_access", "reason", "message"}
