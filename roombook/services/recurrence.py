"""Service for expanding a recurring booking request into dated instances."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING

from dateutil.rrule import DAILY, WEEKLY, rrule, weekday as rrule_weekday

from roombook.domain.errors import (
    NoSchedulableDates,
    RecurrenceConflict,
    RecurrenceTooLong,
    ValidationError,
)
from roombook.domain.models import Cadence, ConflictItem, Instance, RecurrenceExpansion
from roombook.services.calendar import DEFAULT_CALENDAR, HolidayCalendar, diff_days, is_weekend
from roombook.services.conflicts import has_conflict

if TYPE_CHECKING:
    from roombook.repos.base import ReservationStore

logger = logging.getLogger(__name__)

MAX_SERIES_DAYS = 56  # 8 weeks
MAX_OCCURRENCES = 20
ALREADY_BOOKED = "already booked"

_FREQ = {Cadence.DAILY: DAILY, Cadence.WEEKLY: WEEKLY}


def effective_week_days(
    seed_start: datetime, cadence: Cadence, week_days: list[int] | None
) -> list[int]:
    """Weekday mask (Monday=0) the series is restricted to; empty means every day."""
    if week_days:
        return sorted(set(week_days))
    if cadence == Cadence.WEEKLY:
        return [seed_start.weekday()]
    return []


def candidate_starts(
    seed_start: datetime,
    series_end_date: date,
    cadence: Cadence = Cadence.DAILY,
    week_days: list[int] | None = None,
) -> list[datetime]:
    """Every candidate start from the seed date through *series_end_date*, inclusive.

    Candidates keep the seed's time of day. Weekends and holidays are not
    filtered here.
    """
    mask = effective_week_days(seed_start, cadence, week_days)
    rule = rrule(
        _FREQ[cadence],
        dtstart=seed_start,
        until=datetime.combine(series_end_date, seed_start.time()),
        byweekday=[rrule_weekday(d) for d in mask] or None,
    )
    return list(rule)


def expand_recurrence(
    store: ReservationStore,
    room_id: str,
    seed_start: datetime,
    seed_end: datetime,
    series_end_date: date,
    *,
    skip_conflicts: bool = False,
    cadence: Cadence = Cadence.DAILY,
    week_days: list[int] | None = None,
    calendar: HolidayCalendar | None = None,
    max_series_days: int = MAX_SERIES_DAYS,
    max_occurrences: int = MAX_OCCURRENCES,
) -> RecurrenceExpansion:
    """Expand a seed interval into one instance per business day of the series.

    Weekend and holiday dates are skipped silently. Dates whose slot is already
    taken are collected as conflicts; unless *skip_conflicts* is set, any
    conflict fails the whole expansion with ``RecurrenceConflict`` so the
    caller can confirm before those dates are dropped. Nothing is written.

    Raises ``RecurrenceTooLong`` when the series spans more than
    *max_series_days* (checked before any storage query) or yields more than
    *max_occurrences* bookable instances, and ``NoSchedulableDates`` when no
    instance remains.
    """
    calendar = calendar or DEFAULT_CALENDAR
    if series_end_date < seed_start.date():
        raise ValidationError("The series end date must not be before the first date.")
    if diff_days(seed_start, series_end_date) > max_series_days:
        raise RecurrenceTooLong(
            f"Recurring reservations can span at most {max_series_days // 7} weeks."
        )

    duration = seed_end - seed_start
    expansion = RecurrenceExpansion()

    for instance_start in candidate_starts(seed_start, series_end_date, cadence, week_days):
        day = instance_start.date()
        if is_weekend(day) or calendar.is_holiday(day):
            continue

        instance_end = instance_start + duration
        if has_conflict(store, room_id, instance_start, instance_end):
            expansion.conflicts.append(ConflictItem(date=day, reason=ALREADY_BOOKED))
            continue

        expansion.instances.append(Instance(start=instance_start, end=instance_end))
        if len(expansion.instances) > max_occurrences:
            raise RecurrenceTooLong(
                f"Recurring reservations are limited to {max_occurrences} occurrences."
            )

    if not expansion.instances and not expansion.conflicts:
        raise NoSchedulableDates("Every date in the series is a weekend or holiday.")
    if expansion.conflicts and not skip_conflicts:
        logger.info(
            "Recurring request for room %s conflicts on %d date(s)",
            room_id,
            len(expansion.conflicts),
        )
        raise RecurrenceConflict(expansion.conflicts)
    if not expansion.instances:
        raise NoSchedulableDates("Every date in the series is already booked.")

    return expansion
