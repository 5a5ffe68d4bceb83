"""Service orchestrating creation, update and deletion of reservations."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta

from roombook.config import Settings
from roombook.domain.bus import EventBus
from roombook.domain.errors import (
    Forbidden,
    ReservationNotFound,
    RoomInactive,
    RoomNotFound,
    TimeConflict,
    ValidationError,
)
from roombook.domain.events import AuditEvent
from roombook.domain.models import (
    AuditAction,
    AuditEntity,
    Cadence,
    CreateReservationRequest,
    DeleteScope,
    RecurrenceGroup,
    Reservation,
    ReservationDetail,
    ReservationQuery,
    Room,
    RoomStatus,
    UpdateReservationRequest,
    User,
    to_local_datetime,
)
from roombook.repos.base import ReservationStore
from roombook.services.calendar import DEFAULT_CALENDAR, HolidayCalendar, format_date
from roombook.services.conflicts import has_conflict
from roombook.services.hours import BusinessHoursPolicy
from roombook.services.recurrence import effective_week_days, expand_recurrence

logger = logging.getLogger(__name__)


class ReservationService:
    """Validates and commits reservations against a transactional store.

    A request moves from proposed to validated (interval, business hours,
    room state, conflicts) to committed (written inside a transaction), and
    ends cancelled when deleted. Every check runs before the first write.
    The conflict check and the insert of a single reservation are not one
    serialized unit, so two concurrent requests for the same slot can both
    pass the check; stores that need a hard guarantee should enforce overlap
    exclusion themselves.
    """

    def __init__(
        self,
        store: ReservationStore,
        bus: EventBus,
        settings: Settings | None = None,
        calendar: HolidayCalendar | None = None,
    ) -> None:
        self.store = store
        self.bus = bus
        self.settings = settings or Settings()
        self.policy = BusinessHoursPolicy.from_settings(self.settings)
        self.calendar = calendar or DEFAULT_CALENDAR

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_interval(self, start: datetime, end: datetime) -> None:
        if start >= end:
            raise ValidationError()
        self.policy.validate(start, end)

    def _require_active_room(self, room_id: str) -> Room:
        room = self.store.find_room(room_id)
        if room is None:
            raise RoomNotFound()
        if room.status != RoomStatus.ACTIVE:
            raise RoomInactive()
        return room

    def _require(self, reservation_id: str) -> Reservation:
        reservation = self.store.find_reservation(reservation_id)
        if reservation is None:
            raise ReservationNotFound()
        return reservation

    def _resolve_user(self, employee_id: str | None) -> User | None:
        # Unknown employees still get an anonymous reservation.
        if not employee_id:
            return None
        user = self.store.find_user_by_employee_id(employee_id)
        if user is None:
            logger.info("No user for employee id %s; booking anonymously", employee_id)
        return user

    def _check_owner(self, reservation: Reservation, requester_employee_id: str | None) -> None:
        if requester_employee_id is None:
            return
        owner = self.store.find_user(reservation.user_id) if reservation.user_id else None
        if owner is None or owner.employee_id != requester_employee_id:
            raise Forbidden()

    def _detail(self, reservation: Reservation) -> ReservationDetail:
        return ReservationDetail(
            **reservation.model_dump(),
            room=self.store.find_room(reservation.room_id),
            user=self.store.find_user(reservation.user_id) if reservation.user_id else None,
        )

    def _audit(
        self,
        action: AuditAction,
        reservation_id: str,
        details: dict,
        actor_id: str | None,
    ) -> None:
        self.bus.publish(
            AuditEvent(
                action=action,
                entity=AuditEntity.RESERVATION,
                entity_id=reservation_id,
                details=details,
                actor_id=actor_id,
            )
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self, request: CreateReservationRequest, actor_id: str | None = None
    ) -> ReservationDetail:
        """Create a single or recurring reservation from an API request."""
        if request.recurring is None:
            return self.create_single(
                request.room_id,
                request.user_id,
                request.title,
                request.start,
                request.end,
                actor_id=actor_id,
            )
        recurring = request.recurring
        return self.create_recurring(
            request.room_id,
            request.user_id,
            request.title,
            request.start,
            request.end,
            recurring.end_date,
            skip_conflicts=recurring.skip_conflicts,
            cadence=recurring.cadence,
            week_days=recurring.week_days,
            actor_id=actor_id,
        )

    def create_single(
        self,
        room_id: str,
        user_id: str | None,
        title: str,
        start: datetime,
        end: datetime,
        actor_id: str | None = None,
    ) -> ReservationDetail:
        start, end = to_local_datetime(start), to_local_datetime(end)
        self._validate_interval(start, end)
        self._require_active_room(room_id)
        if has_conflict(self.store, room_id, start, end):
            raise TimeConflict()

        user = self._resolve_user(user_id)
        reservation = Reservation(
            room_id=room_id,
            user_id=user.id if user else None,
            title=title,
            start=start,
            end=end,
        )
        self.store.run_transaction(lambda: self.store.create_reservation(reservation))
        logger.info("Reserved room %s %s-%s (%s)", room_id, start, end, reservation.id)

        self._audit(
            AuditAction.CREATE,
            reservation.id,
            {
                "title": title,
                "room_id": room_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
            },
            actor_id or reservation.user_id,
        )
        return self._detail(reservation)

    def create_recurring(
        self,
        room_id: str,
        user_id: str | None,
        title: str,
        seed_start: datetime,
        seed_end: datetime,
        series_end_date: date,
        *,
        skip_conflicts: bool = False,
        cadence: Cadence = Cadence.DAILY,
        week_days: list[int] | None = None,
        actor_id: str | None = None,
    ) -> ReservationDetail:
        """Book every business day of a series and return its earliest instance.

        Raises ``RecurrenceConflict`` listing the taken dates when any date is
        already booked and *skip_conflicts* is not set; the request can be
        retried with *skip_conflicts* to book the remaining dates. The group
        and all its instances are committed in one transaction.
        """
        seed_start, seed_end = to_local_datetime(seed_start), to_local_datetime(seed_end)
        self._validate_interval(seed_start, seed_end)
        self._require_active_room(room_id)

        expansion = expand_recurrence(
            self.store,
            room_id,
            seed_start,
            seed_end,
            series_end_date,
            skip_conflicts=skip_conflicts,
            cadence=cadence,
            week_days=week_days,
            calendar=self.calendar,
            max_series_days=self.settings.max_series_days,
            max_occurrences=self.settings.max_occurrences,
        )

        user = self._resolve_user(user_id)
        owner_id = user.id if user else None
        group = RecurrenceGroup(
            room_id=room_id,
            user_id=owner_id,
            title=title,
            start_date=seed_start.date(),
            end_date=series_end_date,
            cadence=cadence,
            week_days=effective_week_days(seed_start, cadence, week_days),
        )

        def commit() -> list[Reservation]:
            self.store.create_reservation_group(group)
            return [
                self.store.create_reservation(
                    Reservation(
                        room_id=room_id,
                        user_id=owner_id,
                        title=title,
                        start=instance.start,
                        end=instance.end,
                        group_id=group.id,
                    )
                )
                for instance in expansion.instances
            ]

        created = self.store.run_transaction(commit)
        first = min(created, key=lambda r: r.start)
        logger.info(
            "Reserved room %s for %d occurrence(s) in group %s, skipped %d",
            room_id,
            len(created),
            group.id,
            len(expansion.conflicts),
        )

        self._audit(
            AuditAction.CREATE,
            first.id,
            {
                "title": title,
                "room_id": room_id,
                "group_id": group.id,
                "occurrences": len(created),
                "skipped_dates": [format_date(c.date) for c in expansion.conflicts],
            },
            actor_id or owner_id,
        )
        return self._detail(first)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, reservation_id: str) -> ReservationDetail | None:
        reservation = self.store.find_reservation(reservation_id)
        return self._detail(reservation) if reservation else None

    def list(self, query: ReservationQuery | None = None) -> list[ReservationDetail]:
        """Reservations ordered by start time.

        ``date`` selects reservations starting that day and wins over the
        inclusive ``start_date``/``end_date`` range; with neither, all are returned.
        """
        query = query or ReservationQuery()
        window: tuple[datetime, datetime] | None = None
        if query.date is not None:
            day_start = datetime.combine(query.date, time.min)
            window = (day_start, day_start + timedelta(days=1))
        elif query.start_date is not None and query.end_date is not None:
            window = (
                datetime.combine(query.start_date, time.min),
                datetime.combine(query.end_date + timedelta(days=1), time.min),
            )

        results = []
        for reservation in self.store.list_reservations():
            if query.room_id and reservation.room_id != query.room_id:
                continue
            if window and not (window[0] <= reservation.start < window[1]):
                continue
            results.append(reservation)
        results.sort(key=lambda r: (r.start, r.created_at, r.id))
        return [self._detail(r) for r in results]

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------

    def update(
        self,
        reservation_id: str,
        patch: UpdateReservationRequest,
        requester_employee_id: str | None = None,
        actor_id: str | None = None,
    ) -> ReservationDetail:
        """Apply *patch*; any time field re-runs every interval check against other bookings."""
        existing = self._require(reservation_id)
        self._check_owner(existing, requester_employee_id)

        changes = patch.model_dump(exclude_none=True)
        if not changes:
            return self._detail(existing)

        if patch.changes_time:
            start = patch.start or existing.start
            end = patch.end or existing.end
            self._validate_interval(start, end)
            if has_conflict(self.store, existing.room_id, start, end, reservation_id):
                raise TimeConflict()

        updated = existing.model_copy(update={**changes, "updated_at": datetime.now()})
        self.store.run_transaction(lambda: self.store.update_reservation(updated))

        self._audit(
            AuditAction.UPDATE,
            reservation_id,
            patch.model_dump(mode="json", exclude_none=True),
            actor_id,
        )
        return self._detail(updated)

    def delete(
        self,
        reservation_id: str,
        requester_employee_id: str | None = None,
        scope: DeleteScope = DeleteScope.THIS,
        actor_id: str | None = None,
    ) -> None:
        """Cancel a reservation, or its whole recurring series with ``scope=all``.

        *requester_employee_id* must match the owner; privileged callers pass
        ``None`` to skip the ownership check.
        """
        existing = self._require(reservation_id)
        self._check_owner(existing, requester_employee_id)

        details = {"title": existing.title, "scope": scope}
        group_id = existing.group_id
        if scope == DeleteScope.ALL and group_id:

            def cascade() -> None:
                self.store.delete_reservations_by_group(group_id)
                self.store.delete_group(group_id)

            self.store.run_transaction(cascade)
            details["group_id"] = group_id
            logger.info("Deleted recurring group %s", group_id)
        else:
            self.store.run_transaction(lambda: self.store.delete_reservation(reservation_id))

        self._audit(AuditAction.DELETE, reservation_id, details, actor_id or existing.user_id)
