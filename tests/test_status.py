"""Tests for lifecycle stage and follow-up urgency."""
from datetime import datetime, timedelta

import pytest

from app.crm.status import (
    FollowUpUrgency,
    LifecycleStage,
    days_untracked,
    expiry_countdown,
    follow_up_urgency,
    lifecycle_stage,
    weeks_since,
)

NOW = datetime(2026, 3, 15, 9, 30, 0)


def test_no_deal_is_prospect():
    status = lifecycle_stage(None, NOW)
    assert status.stage == LifecycleStage.PROSPECT
    assert status.weeks is None


def test_deal_one_hour_old_is_week_one():
    assert weeks_since(NOW - timedelta(hours=1), NOW) == 1
    status = lifecycle_stage(NOW - timedelta(hours=1), NOW)
    assert status.stage == LifecycleStage.ONBOARDING
    assert status.weeks == 1


def test_ten_days_onboarding_fifteen_days_stable():
    ten = lifecycle_stage(NOW - timedelta(days=10), NOW)
    assert (ten.stage, ten.weeks) == (LifecycleStage.ONBOARDING, 2)

    fifteen = lifecycle_stage(NOW - timedelta(days=15), NOW)
    assert (fifteen.stage, fifteen.weeks) == (LifecycleStage.STABLE, 3)


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(weeks=2), LifecycleStage.ONBOARDING),
        (timedelta(weeks=2, seconds=1), LifecycleStage.STABLE),
        (timedelta(weeks=8), LifecycleStage.STABLE),
        (timedelta(weeks=8, seconds=1), LifecycleStage.RENEWAL_DUE),
        (timedelta(weeks=12), LifecycleStage.RENEWAL_DUE),
        (timedelta(weeks=12, seconds=1), LifecycleStage.EXPIRED),
        (timedelta(weeks=52), LifecycleStage.EXPIRED),
    ],
)
def test_lifecycle_band_upper_bounds_are_inclusive(elapsed, expected):
    assert lifecycle_stage(NOW - elapsed, NOW).stage == expected


def test_future_deal_date_is_onboarding():
    status = lifecycle_stage(NOW + timedelta(days=3), NOW)
    assert status.stage == LifecycleStage.ONBOARDING


def test_lifecycle_never_regresses():
    order = list(LifecycleStage)
    deal = NOW - timedelta(days=1)
    previous = order.index(lifecycle_stage(deal, NOW).stage)
    for hours in range(0, 24 * 7 * 20, 5):
        current = order.index(lifecycle_stage(deal, NOW + timedelta(hours=hours)).stage)
        assert current >= previous
        previous = current


def test_follow_up_scenarios():
    assert follow_up_urgency(NOW - timedelta(days=4), NOW).urgency == FollowUpUrgency.WARNING
    today = follow_up_urgency(NOW, NOW)
    assert today.urgency == FollowUpUrgency.CONTACTED_TODAY
    assert today.days == 0


@pytest.mark.parametrize(
    "days, expected",
    [
        (1, FollowUpUrgency.NORMAL),
        (3, FollowUpUrgency.NORMAL),
        (4, FollowUpUrgency.WARNING),
        (14, FollowUpUrgency.WARNING),
        (15, FollowUpUrgency.URGENT),
        (90, FollowUpUrgency.URGENT),
    ],
)
def test_follow_up_boundaries(days, expected):
    status = follow_up_urgency(NOW - timedelta(days=days), NOW)
    assert status.urgency == expected
    assert status.days == days


def test_partial_day_floors():
    assert days_untracked(NOW - timedelta(hours=23, minutes=59), NOW) == 0
    assert days_untracked(NOW - timedelta(days=3, hours=23), NOW) == 3


def test_clock_skew_clamps_to_zero():
    status = follow_up_urgency(NOW + timedelta(days=2), NOW)
    assert status.urgency == FollowUpUrgency.CONTACTED_TODAY
    assert status.days == 0


def test_follow_up_never_decreases():
    order = list(FollowUpUrgency)
    last = NOW
    previous_days = 0
    previous_rank = 0
    for hours in range(0, 24 * 30, 7):
        status = follow_up_urgency(last, NOW + timedelta(hours=hours))
        assert status.days >= previous_days >= 0
        assert order.index(status.urgency) >= previous_rank
        previous_days = status.days
        previous_rank = order.index(status.urgency)


def test_inputs_are_untouched():
    deal = NOW - timedelta(days=20)
    lifecycle_stage(deal, NOW)
    follow_up_urgency(deal, NOW)
    assert deal == NOW - timedelta(days=20)


def test_expiry_countdown():
    assert expiry_countdown(None, NOW) is None
    assert expiry_countdown(NOW + timedelta(days=3), NOW) == 3
    assert expiry_countdown(NOW - timedelta(hours=1), NOW) == -1


def test_to_dict_is_presentation_free():
    assert lifecycle_stage(NOW - timedelta(days=15), NOW).to_dict() == {"stage": "stable", "weeks": 3}
    assert follow_up_urgency(NOW - timedelta(days=20), NOW).to_dict() == {"urgency": "urgent", "days": 20}
