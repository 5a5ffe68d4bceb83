"""Tests for the calendar helpers."""

from __future__ import annotations

import json
from datetime import date, datetime

from roombook.services.calendar import (
    HolidayCalendar,
    HolidayKind,
    add_days,
    diff_days,
    format_date,
    is_holiday,
    is_weekend,
)


def test_weekend_detection():
    assert is_weekend(date(2025, 6, 7))  # Saturday
    assert is_weekend(date(2025, 6, 8))  # Sunday
    assert not is_weekend(date(2025, 6, 9))  # Monday
    assert is_weekend(datetime(2025, 6, 7, 9, 0))


def test_fixed_date_holidays_apply_to_any_year():
    assert is_holiday(date(2025, 1, 1))
    assert is_holiday(date(2031, 12, 25))
    assert is_holiday(date(2025, 6, 6))
    assert not is_holiday(date(2025, 6, 5))


def test_listed_lunar_holidays():
    assert is_holiday(date(2025, 10, 6))
    assert is_holiday(date(2025, 10, 8))  # substitute day
    assert is_holiday(date(2026, 2, 17))
    assert not is_holiday(date(2025, 10, 10))


def test_unknown_year_only_knows_fixed_dates():
    # Chuseok moves every year; 2030 is not in the bundled table.
    assert not is_holiday(date(2030, 9, 12))
    assert is_holiday(date(2030, 8, 15))


def test_date_arithmetic():
    assert add_days(date(2025, 6, 30), 1) == date(2025, 7, 1)
    assert add_days(date(2025, 6, 2), -2) == date(2025, 5, 31)
    assert diff_days(date(2025, 6, 2), date(2025, 6, 13)) == 11
    assert diff_days(date(2025, 6, 13), date(2025, 6, 2)) == 11
    assert diff_days(datetime(2025, 6, 2, 17, 0), date(2025, 6, 3)) == 1
    assert format_date(datetime(2025, 6, 2, 9, 30)) == "2025-06-02"


def test_holidays_for_year_sorted_with_kinds():
    holidays = HolidayCalendar().holidays_for_year(2025)
    dates = [h.date for h in holidays]
    assert dates == sorted(dates)
    assert holidays[0].date == date(2025, 1, 1)
    assert holidays[0].kind == HolidayKind.FIXED
    assert any(h.kind == HolidayKind.LUNAR and h.date == date(2025, 1, 29) for h in holidays)


def test_calendar_loaded_from_json(tmp_path):
    path = tmp_path / "holidays.json"
    path.write_text(
        json.dumps({"by_year": {"2027": [["2027-02-08", "Seollal"]]}}),
        encoding="utf-8",
    )
    calendar = HolidayCalendar.from_json(path)

    assert calendar.is_holiday(date(2027, 2, 8))
    assert calendar.is_holiday(date(2027, 1, 1))  # fixed dates kept
    assert not calendar.is_holiday(date(2025, 10, 6))  # bundled years replaced
    assert calendar.known_years() == [2027]
    assert not calendar.is_business_day(date(2027, 2, 8))
    assert calendar.is_business_day(date(2027, 2, 9))
