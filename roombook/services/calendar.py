"""Calendar helpers: weekend/holiday classification and date arithmetic.

Holidays come from a finite table, not an algorithm. Fixed-date holidays
apply to every year; lunar and substitute holidays are listed per year, so a
year missing from the table only knows its fixed-date holidays. Deployments
that need more years load a table with ``HolidayCalendar.from_json``.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field


class HolidayKind(StrEnum):
    FIXED = "FIXED"
    LUNAR = "LUNAR"


class Holiday(BaseModel):
    date: date
    name: str
    kind: HolidayKind


# "MM-DD" -> name
FIXED_HOLIDAYS: dict[str, str] = {
    "01-01": "New Year's Day",
    "03-01": "Independence Movement Day",
    "05-05": "Children's Day",
    "06-06": "Memorial Day",
    "08-15": "Liberation Day",
    "10-03": "National Foundation Day",
    "10-09": "Hangul Day",
    "12-25": "Christmas Day",
}

# year -> [(ISO date, name)]
LUNAR_HOLIDAYS: dict[int, list[tuple[str, str]]] = {
    2024: [
        ("2024-02-09", "Seollal"),
        ("2024-02-10", "Seollal"),
        ("2024-02-11", "Seollal"),
        ("2024-02-12", "Substitute holiday (Seollal)"),
        ("2024-05-15", "Buddha's Birthday"),
        ("2024-09-16", "Chuseok"),
        ("2024-09-17", "Chuseok"),
        ("2024-09-18", "Chuseok"),
    ],
    2025: [
        ("2025-01-28", "Seollal"),
        ("2025-01-29", "Seollal"),
        ("2025-01-30", "Seollal"),
        ("2025-05-05", "Buddha's Birthday"),
        ("2025-05-06", "Substitute holiday (Buddha's Birthday)"),
        ("2025-10-05", "Chuseok"),
        ("2025-10-06", "Chuseok"),
        ("2025-10-07", "Chuseok"),
        ("2025-10-08", "Substitute holiday (Chuseok)"),
    ],
    2026: [
        ("2026-02-16", "Seollal"),
        ("2026-02-17", "Seollal"),
        ("2026-02-18", "Seollal"),
        ("2026-05-24", "Buddha's Birthday"),
        ("2026-05-25", "Substitute holiday (Buddha's Birthday)"),
        ("2026-09-24", "Chuseok"),
        ("2026-09-25", "Chuseok"),
        ("2026-09-26", "Chuseok"),
    ],
}


class HolidayTable(BaseModel):
    """On-disk shape of a holiday table (see ``HolidayCalendar.from_json``)."""

    fixed: dict[str, str] = Field(default_factory=dict)
    by_year: dict[int, list[tuple[date, str]]] = Field(default_factory=dict)


class HolidayCalendar:
    """Lookup of fixed-date and per-year holidays."""

    def __init__(
        self,
        fixed: dict[str, str] | None = None,
        by_year: dict[int, list[tuple[str, str]]] | None = None,
    ) -> None:
        self._fixed = dict(FIXED_HOLIDAYS if fixed is None else fixed)
        source = LUNAR_HOLIDAYS if by_year is None else by_year
        self._by_year: dict[int, dict[date, str]] = {
            year: {_as_date(day): name for day, name in entries}
            for year, entries in source.items()
        }

    @classmethod
    def from_json(cls, path: str | Path) -> HolidayCalendar:
        """Load a table of the form ``{"fixed": {"MM-DD": name}, "by_year": {"2027": [["2027-02-06", name]]}}``."""
        table = HolidayTable.model_validate(json.loads(Path(path).read_text(encoding="utf-8")))
        return cls(
            fixed=table.fixed or None,
            by_year={year: [(d.isoformat(), n) for d, n in rows] for year, rows in table.by_year.items()},
        )

    def known_years(self) -> list[int]:
        return sorted(self._by_year)

    def is_holiday(self, day: date | datetime) -> bool:
        day = _as_day(day)
        if day.strftime("%m-%d") in self._fixed:
            return True
        return day in self._by_year.get(day.year, {})

    def is_business_day(self, day: date | datetime) -> bool:
        return not is_weekend(day) and not self.is_holiday(day)

    def holidays_for_year(self, year: int) -> list[Holiday]:
        holidays = []
        for month_day, name in self._fixed.items():
            month, day = (int(part) for part in month_day.split("-"))
            holidays.append(Holiday(date=date(year, month, day), name=name, kind=HolidayKind.FIXED))
        for day, name in self._by_year.get(year, {}).items():
            holidays.append(Holiday(date=day, name=name, kind=HolidayKind.LUNAR))
        return sorted(holidays, key=lambda h: h.date)


def _as_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


DEFAULT_CALENDAR = HolidayCalendar()


# ---------------------------------------------------------------------------
# Plain helpers
# ---------------------------------------------------------------------------


def is_weekend(day: date | datetime) -> bool:
    return _as_day(day).weekday() >= 5


def is_holiday(day: date | datetime, calendar: HolidayCalendar | None = None) -> bool:
    return (calendar or DEFAULT_CALENDAR).is_holiday(_as_day(day))


def add_days(day: date, n: int) -> date:
    return day + timedelta(days=n)


def diff_days(a: date | datetime, b: date | datetime) -> int:
    """Whole calendar days between *a* and *b*, regardless of order."""
    return abs((_as_day(b) - _as_day(a)).days)


def format_date(day: date | datetime) -> str:
    return _as_day(day).strftime("%Y-%m-%d")
