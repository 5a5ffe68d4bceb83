"""Tests for the operating-hours and lunch-break policy."""

from __future__ import annotations

from datetime import datetime, time

import pytest

from roombook.config import Settings
from roombook.domain.errors import LunchBlackout, OutsideBusinessHours
from roombook.services.hours import BusinessHoursPolicy, validate_business_hours


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 6, 2, hour, minute)


def test_morning_slot_passes():
    validate_business_hours(_at(9), _at(10))


def test_full_operating_window_boundaries_pass():
    validate_business_hours(_at(8), _at(11, 30))
    validate_business_hours(_at(12, 30), _at(18))


# ---------------------------------------------------------------------------
# Lunch blackout boundaries
# ---------------------------------------------------------------------------


def test_ending_exactly_at_lunch_start_passes():
    validate_business_hours(_at(11), _at(11, 30))


def test_ending_one_minute_into_lunch_fails():
    with pytest.raises(LunchBlackout):
        validate_business_hours(_at(11), _at(11, 31))


def test_starting_exactly_at_lunch_end_passes():
    validate_business_hours(_at(12, 30), _at(13, 30))


def test_starting_one_minute_before_lunch_end_fails():
    with pytest.raises(LunchBlackout):
        validate_business_hours(_at(12, 29), _at(13, 30))


def test_spanning_lunch_fails():
    with pytest.raises(LunchBlackout):
        validate_business_hours(_at(10), _at(14))


# ---------------------------------------------------------------------------
# Operating window
# ---------------------------------------------------------------------------


def test_starting_before_opening_fails():
    with pytest.raises(OutsideBusinessHours):
        validate_business_hours(_at(7, 59), _at(9))


def test_ending_after_closing_fails():
    with pytest.raises(OutsideBusinessHours):
        validate_business_hours(_at(17), _at(18, 1))


def test_ending_at_midnight_next_day_fails():
    with pytest.raises(OutsideBusinessHours, match="same day"):
        validate_business_hours(_at(17), datetime(2025, 6, 3, 0, 0))


def test_multi_day_interval_fails():
    with pytest.raises(OutsideBusinessHours):
        validate_business_hours(_at(9), datetime(2025, 6, 3, 10, 0))


def test_lunch_reported_before_hours():
    """An interval breaking both rules reports the lunch break."""
    with pytest.raises(LunchBlackout):
        validate_business_hours(_at(7), _at(19))


def test_only_wall_clock_components_are_compared():
    start = datetime.fromisoformat("2025-06-02T09:00:00+09:00").replace(tzinfo=None)
    validate_business_hours(start, start.replace(hour=10))


def test_policy_from_settings():
    policy = BusinessHoursPolicy.from_settings(
        Settings(open_time=time(9, 0), close_time=time(20, 0))
    )
    policy.validate(_at(18), _at(20))
    with pytest.raises(OutsideBusinessHours, match="09:00 and 20:00"):
        policy.validate(_at(8), _at(9))
