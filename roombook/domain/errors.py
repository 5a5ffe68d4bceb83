"""Booking error taxonomy.

Every failure the services raise is a ``BookingError`` subclass carrying a
stable ``code`` and the HTTP ``status_code`` the API maps it to, so callers
can match on type rather than on message text.
"""

from __future__ import annotations

from roombook.domain.models import ConflictItem


class BookingError(Exception):
    code = "BOOKING_ERROR"
    status_code = 400
    default_message = "The booking request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookingError):
    code = "VALIDATION_ERROR"
    default_message = "The reservation end time must be after its start time."


class OutsideBusinessHours(BookingError):
    code = "OUTSIDE_BUSINESS_HOURS"
    default_message = "Reservations are only available between 08:00 and 18:00."


class LunchBlackout(BookingError):
    code = "LUNCH_BLACKOUT"
    default_message = "Reservations cannot overlap the lunch break (11:30 ~ 12:30)."


class RoomNotFound(BookingError):
    code = "ROOM_NOT_FOUND"
    status_code = 404
    default_message = "The meeting room does not exist."


class RoomInactive(BookingError):
    code = "ROOM_INACTIVE"
    default_message = "The meeting room is not available for booking."


class RoomAlreadyClosed(BookingError):
    code = "ROOM_ALREADY_CLOSED"
    default_message = "The meeting room is already closed."


class RoomHasReservations(BookingError):
    code = "ROOM_HAS_RESERVATIONS"
    status_code = 409
    default_message = "The meeting room still has reservations."


class ReservationNotFound(BookingError):
    code = "RESERVATION_NOT_FOUND"
    status_code = 404
    default_message = "The reservation does not exist."


class UserNotFound(BookingError):
    code = "USER_NOT_FOUND"
    status_code = 404
    default_message = "The user does not exist."


class TimeConflict(BookingError):
    code = "TIME_CONFLICT"
    status_code = 409
    default_message = "The room is already booked for that time."


class RecurrenceTooLong(BookingError):
    code = "RECURRENCE_TOO_LONG"
    default_message = "Recurring reservations are limited to 8 weeks and 20 occurrences."


class NoSchedulableDates(BookingError):
    code = "NO_SCHEDULABLE_DATES"
    default_message = "No bookable dates remain in the requested series."


class Forbidden(BookingError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Only the owner may change this reservation."


class RecurrenceConflict(BookingError):
    """Some dates of a recurring request are already booked.

    Recoverable: the caller may retry with ``skip_conflicts`` set to book
    only the free dates.
    """

    code = "CONFLICT_RECURRING"
    status_code = 409
    default_message = "Some dates in the series are already booked."

    def __init__(self, conflicts: list[ConflictItem], message: str | None = None) -> None:
        self.conflicts = list(conflicts)
        super().__init__(message)
