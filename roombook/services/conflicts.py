"""Service for detecting overlapping reservations in a room."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from roombook.domain.models import Reservation

if TYPE_CHECKING:
    from roombook.repos.base import ReservationStore


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open ``[start, end)`` overlap; touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing: list[Reservation],
) -> list[Reservation]:
    """Return existing reservations that overlap with the given time range.

    Overlap rule: conflict if existing.start < new_end AND existing.end > new_start.
    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return [r for r in existing if overlaps(r.start, r.end, new_start, new_end)]


def has_conflict(
    store: ReservationStore,
    room_id: str,
    start: datetime,
    end: datetime,
    exclude_reservation_id: str | None = None,
) -> bool:
    """Return True if *room_id* already has a reservation overlapping ``[start, end)``.

    *exclude_reservation_id* leaves one reservation out of consideration, so
    an update can be checked against everything except itself.
    """
    overlapping = store.find_reservations_overlapping(
        room_id, start, end, exclude_id=exclude_reservation_id
    )
    return len(overlapping) > 0
