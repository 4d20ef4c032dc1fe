"""
Derived customer status.

Both classifiers are pure: they take timestamps plus `now` and return an enum
with the raw count, leaving wording and colour to whoever renders them.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.crm.constants import (
    NORMAL_MAX_DAYS,
    ONBOARDING_MAX_WEEKS,
    RENEWAL_MAX_WEEKS,
    STABLE_MAX_WEEKS,
    WARNING_MAX_DAYS,
)

_ONE_WEEK = timedelta(days=7)
_ONE_DAY = timedelta(days=1)


class LifecycleStage(str, enum.Enum):
    PROSPECT = "prospect"
    ONBOARDING = "onboarding"
    STABLE = "stable"
    RENEWAL_DUE = "renewal_due"
    EXPIRED = "expired"


class FollowUpUrgency(str, enum.Enum):
    CONTACTED_TODAY = "contacted_today"
    NORMAL = "normal"
    WARNING = "warning"
    URGENT = "urgent"


@dataclass(frozen=True)
class LifecycleStatus:
    stage: LifecycleStage
    weeks: int | None = None

    def to_dict(self) -> dict:
        return {"stage": self.stage.value, "weeks": self.weeks}


@dataclass(frozen=True)
class FollowUpStatus:
    urgency: FollowUpUrgency
    days: int

    def to_dict(self) -> dict:
        return {"urgency": self.urgency.value, "days": self.days}


def weeks_since(deal_date: datetime, now: datetime) -> int:
    """Ceiling weeks: a deal closed one hour ago is in week 1."""
    return -((deal_date - now) // _ONE_WEEK)


def days_untracked(last_tracked_date: datetime, now: datetime) -> int:
    """Whole days since the last save, floored; clock skew clamps to 0."""
    return max((now - last_tracked_date) // _ONE_DAY, 0)


def lifecycle_stage(deal_date: datetime | None, now: datetime) -> LifecycleStatus:
    if deal_date is None:
        return LifecycleStatus(LifecycleStage.PROSPECT)
    weeks = weeks_since(deal_date, now)
    if weeks <= ONBOARDING_MAX_WEEKS:
        return LifecycleStatus(LifecycleStage.ONBOARDING, weeks)
    if weeks <= STABLE_MAX_WEEKS:
        return LifecycleStatus(LifecycleStage.STABLE, weeks)
    if weeks <= RENEWAL_MAX_WEEKS:
        return LifecycleStatus(LifecycleStage.RENEWAL_DUE, weeks)
    return LifecycleStatus(LifecycleStage.EXPIRED, weeks)


def follow_up_urgency(last_tracked_date: datetime, now: datetime) -> FollowUpStatus:
    days = days_untracked(last_tracked_date, now)
    if days <= 0:
        return FollowUpStatus(FollowUpUrgency.CONTACTED_TODAY, 0)
    if days <= NORMAL_MAX_DAYS:
        return FollowUpStatus(FollowUpUrgency.NORMAL, days)
    if days <= WARNING_MAX_DAYS:
        return FollowUpStatus(FollowUpUrgency.WARNING, days)
    return FollowUpStatus(FollowUpUrgency.URGENT, days)


def expiry_countdown(expiry_date: datetime | None, now: datetime) -> int | None:
    """Whole days until expiry (negative once passed), or None when unset."""
    if expiry_date is None:
        return None
    return (expiry_date - now) // _ONE_DAY
