"""In-memory repositories for rooms, users, reservations and audit logs."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, TypeVar

from roombook.domain.models import (
    AuditLogEntry,
    RecurrenceGroup,
    Reservation,
    Room,
    RoomStatus,
    User,
    UserRole,
)
from roombook.services.conflicts import find_conflicts

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryStore:
    """Dict-backed implementation of ``ReservationStore``.

    Stored models are never mutated in place; updates replace the entry, so a
    transaction can be rolled back by restoring shallow copies of the dicts.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._users: dict[str, User] = {}
        self._reservations: dict[str, Reservation] = {}
        self._groups: dict[str, RecurrenceGroup] = {}
        self._lock = threading.RLock()
        self._depth = 0

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def find_room(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def list_rooms(self) -> list[Room]:
        return list(self._rooms.values())

    def save_room(self, room: Room) -> Room:
        self._rooms[room.id] = room
        return room

    def delete_room(self, room_id: str) -> None:
        self._rooms.pop(room_id, None)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def find_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def find_user_by_employee_id(self, employee_id: str) -> User | None:
        for user in self._users.values():
            if user.employee_id == employee_id:
                return user
        return None

    def list_users(self) -> list[User]:
        return list(self._users.values())

    def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------

    def find_reservation(self, reservation_id: str) -> Reservation | None:
        return self._reservations.get(reservation_id)

    def list_reservations(self) -> list[Reservation]:
        return list(self._reservations.values())

    def find_reservations_overlapping(
        self,
        room_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[Reservation]:
        candidates = [
            r
            for r in self._reservations.values()
            if r.room_id == room_id and r.id != exclude_id
        ]
        return find_conflicts(start, end, candidates)

    def create_reservation(self, reservation: Reservation) -> Reservation:
        self._reservations[reservation.id] = reservation
        return reservation

    def update_reservation(self, reservation: Reservation) -> Reservation:
        if reservation.id not in self._reservations:
            raise KeyError(reservation.id)
        self._reservations[reservation.id] = reservation
        return reservation

    def delete_reservation(self, reservation_id: str) -> None:
        self._reservations.pop(reservation_id, None)

    # ------------------------------------------------------------------
    # Recurrence groups
    # ------------------------------------------------------------------

    def create_reservation_group(self, group: RecurrenceGroup) -> RecurrenceGroup:
        self._groups[group.id] = group
        return group

    def find_group(self, group_id: str) -> RecurrenceGroup | None:
        return self._groups.get(group_id)

    def list_group_members(self, group_id: str) -> list[Reservation]:
        return [r for r in self._reservations.values() if r.group_id == group_id]

    def delete_reservations_by_group(self, group_id: str) -> None:
        """Delete every reservation belonging to a recurring series."""
        to_remove = [rid for rid, r in self._reservations.items() if r.group_id == group_id]
        for rid in to_remove:
            del self._reservations[rid]

    def delete_group(self, group_id: str) -> None:
        self._groups.pop(group_id, None)

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    def run_transaction(self, fn: Callable[[], T]) -> T:
        """Run *fn* atomically; nested calls join the outer transaction."""
        with self._lock:
            if self._depth:
                return fn()
            snapshot = (
                dict(self._rooms),
                dict(self._users),
                dict(self._reservations),
                dict(self._groups),
            )
            self._depth += 1
            try:
                return fn()
            except Exception:
                self._rooms, self._users, self._reservations, self._groups = snapshot
                logger.warning("Transaction rolled back")
                raise
            finally:
                self._depth -= 1


class AuditLogRepository:
    """List-backed store for AuditLogEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    def add(self, entry: AuditLogEntry) -> None:
        self._entries.append(entry)

    def list_recent(self, limit: int | None = None) -> list[AuditLogEntry]:
        entries = sorted(self._entries, key=lambda e: e.created_at, reverse=True)
        return entries[:limit] if limit is not None else entries

    def list_for_entity(self, entity_id: str) -> list[AuditLogEntry]:
        return sorted(
            [e for e in self._entries if e.entity_id == entity_id],
            key=lambda e: e.created_at,
        )


# ---------------------------------------------------------------------------
# Seed data – a few rooms and an administrator for local development
# ---------------------------------------------------------------------------


def _seed(store: InMemoryStore) -> None:
    for name, building, floor, capacity, equipment in (
        ("Orion", "HQ", "3F", 8, ["display"]),
        ("Lyra", "HQ", "3F", 4, []),
        ("Draco", "HQ", "5F", 20, ["projector", "video_conference"]),
    ):
        store.save_room(
            Room(
                name=name,
                building=building,
                floor=floor,
                capacity=capacity,
                equipment=equipment,
            )
        )
    store.save_room(Room(name="Annex", building="Annex", floor="1F", capacity=6, status=RoomStatus.CLOSED))
    store.save_user(User(employee_id="E000001", name="Facilities Admin", role=UserRole.ADMIN))


def create_store(seed: bool = False) -> InMemoryStore:
    """Return an InMemoryStore, optionally pre-loaded with sample data."""
    store = InMemoryStore()
    if seed:
        _seed(store)
    return store
