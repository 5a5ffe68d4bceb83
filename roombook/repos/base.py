"""Storage contract consumed by the booking services."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from roombook.domain.models import RecurrenceGroup, Reservation, Room, User

T = TypeVar("T")


class ReservationStore(Protocol):
    """Transactional create/read/delete of rooms, users and reservations.

    Any implementation must make ``run_transaction`` all-or-nothing: if *fn*
    raises, every write it made is undone before the exception propagates.
    """

    # Rooms
    def find_room(self, room_id: str) -> Room | None: ...

    def list_rooms(self) -> list[Room]: ...

    def save_room(self, room: Room) -> Room: ...

    def delete_room(self, room_id: str) -> None: ...

    # Users
    def find_user(self, user_id: str) -> User | None: ...

    def find_user_by_employee_id(self, employee_id: str) -> User | None: ...

    def list_users(self) -> list[User]: ...

    def save_user(self, user: User) -> User: ...

    # Reservations
    def find_reservation(self, reservation_id: str) -> Reservation | None: ...

    def list_reservations(self) -> list[Reservation]: ...

    def find_reservations_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[Reservation]: ...

    def create_reservation(self, reservation: Reservation) -> Reservation: ...

    def update_reservation(self, reservation: Reservation) -> Reservation: ...

    def delete_reservation(self, reservation_id: str) -> None: ...

    # Recurrence groups
    def create_reservation_group(self, group: RecurrenceGroup) -> RecurrenceGroup: ...

    def find_group(self, group_id: str) -> RecurrenceGroup | None: ...

    def delete_reservations_by_group(self, group_id: str) -> None: ...

    def delete_group(self, group_id: str) -> None: ...

    # Units of work
    def run_transaction(self, fn: Callable[[], T]) -> T: ...
