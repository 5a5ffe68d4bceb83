"""Operating-hours and lunch-break policy for reservation intervals."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from roombook.config import Settings
from roombook.domain.errors import LunchBlackout, OutsideBusinessHours


def _minutes(value: datetime | time) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class BusinessHoursPolicy:
    open_time: time = time(8, 0)
    close_time: time = time(18, 0)
    lunch_start: time = time(11, 30)
    lunch_end: time = time(12, 30)

    @classmethod
    def from_settings(cls, settings: Settings) -> BusinessHoursPolicy:
        return cls(
            open_time=settings.open_time,
            close_time=settings.close_time,
            lunch_start=settings.lunch_start,
            lunch_end=settings.lunch_end,
        )

    def validate(self, start: datetime, end: datetime) -> None:
        """Raise if ``[start, end)`` touches the lunch break or leaves operating hours.

        Both bounds must fall on the same calendar day; beyond that only the
        wall-clock hour and minute are compared. The lunch check runs before
        the operating-window check, so an interval violating both rules
        reports ``LunchBlackout``.
        """
        if end.date() != start.date():
            raise OutsideBusinessHours(
                "Reservations must start and end on the same day, between "
                f"{self.open_time:%H:%M} and {self.close_time:%H:%M}."
            )

        start_total = _minutes(start)
        end_total = _minutes(end)

        if start_total < _minutes(self.lunch_end) and end_total > _minutes(self.lunch_start):
            raise LunchBlackout(
                f"Reservations cannot overlap the lunch break "
                f"({self.lunch_start:%H:%M} ~ {self.lunch_end:%H:%M})."
            )

        if start_total < _minutes(self.open_time) or end_total > _minutes(self.close_time):
            raise OutsideBusinessHours(
                f"Reservations are only available between "
                f"{self.open_time:%H:%M} and {self.close_time:%H:%M}."
            )


DEFAULT_POLICY = BusinessHoursPolicy()


def validate_business_hours(
    start: datetime, end: datetime, policy: BusinessHoursPolicy | None = None
) -> None:
    (policy or DEFAULT_POLICY).validate(start, end)
