"""
Trial / access evaluator — may this account use the product right now?

Decision table (evaluated fresh on every call, never persisted)
---------------------------------------------------------------
  no account                      -> deny   NO_USER
  status "active"                 -> allow  is_paid
  status "trial", now < trial_end -> allow  is_trial, days_left = ceil(remaining days)
  status "trial", otherwise       -> deny   TRIAL_EXPIRED
  status "canceled"/"cancelled"   -> deny   SUBSCRIPTION_CANCELLED
  anything else                   -> deny   UNKNOWN_STATUS

Unrecognized states never grant access.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional

from app.core.clock import as_utc, utc_now
from app.services.features import TRIAL_DAYS
from app.services.snapshots import AccountSnapshot


class AccessReason:
    NO_USER                = "NO_USER"
    TRIAL_EXPIRED          = "TRIAL_EXPIRED"
    SUBSCRIPTION_CANCELLED = "SUBSCRIPTION_CANCELLED"
    UNKNOWN_STATUS         = "UNKNOWN_STATUS"


_MESSAGES = {
    AccessReason.NO_USER:                "User not found. Please log in again.",
    AccessReason.TRIAL_EXPIRED:          "Your free trial has ended. Choose a plan to continue your journey.",
    AccessReason.SUBSCRIPTION_CANCELLED: "Your subscription has been cancelled. Resubscribe to regain access.",
    AccessReason.UNKNOWN_STATUS:         "We could not verify your subscription. Please contact support.",
}

_SECONDS_PER_DAY = 86400


@dataclass
class AccessDecision:
    has_access: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    is_trial: Optional[bool] = None
    days_left: Optional[int] = None
    is_paid: Optional[bool] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


def _deny(reason: str) -> AccessDecision:
    return AccessDecision(has_access=False, reason=reason, message=_MESSAGES[reason])


def trial_end_for(account: AccountSnapshot) -> Optional[datetime]:
    """Stored trial end, or creation time + TRIAL_DAYS when it was never stored."""
    if account.trial_end_date is not None:
        return as_utc(account.trial_end_date)
    if account.created_at is not None:
        return as_utc(account.created_at) + timedelta(days=TRIAL_DAYS)
    return None


def trial_days_left(trial_end: datetime, now: datetime) -> int:
    """User-facing countdown: partial days round up."""
    remaining = (as_utc(trial_end) - as_utc(now)).total_seconds()
    return math.ceil(remaining / _SECONDS_PER_DAY)


def evaluate_access(
    account: Optional[AccountSnapshot],
    now: Optional[datetime] = None,
) -> AccessDecision:
    if account is None:
        return _deny(AccessReason.NO_USER)

    now = as_utc(now or utc_now())
    status = account.subscription_status

    if status == "active":
        return AccessDecision(has_access=True, is_paid=True)

    if status == "trial":
        trial_end = trial_end_for(account)
        if trial_end is not None and now < trial_end:
            return AccessDecision(
                has_access=True,
                is_trial=True,
                days_left=trial_days_left(trial_end, now),
            )
        return _deny(AccessReason.TRIAL_EXPIRED)

    if status in ("cancelled", "canceled"):
        return _deny(AccessReason.SUBSCRIPTION_CANCELLED)

    return _deny(AccessReason.UNKNOWN_STATUS)
