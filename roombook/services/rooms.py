"""Service for administering meeting rooms."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from roombook.domain.bus import EventBus
from roombook.domain.errors import RoomAlreadyClosed, RoomHasReservations, RoomNotFound
from roombook.domain.events import AuditEvent
from roombook.domain.models import AuditAction, AuditEntity, Room, RoomCreate, RoomStatus, RoomUpdate
from roombook.repos.base import ReservationStore

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(
        self,
        store: ReservationStore,
        bus: EventBus,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.bus = bus
        self.clock = clock or datetime.now

    def _require(self, room_id: str) -> Room:
        room = self.store.find_room(room_id)
        if room is None:
            raise RoomNotFound()
        return room

    def _audit(self, action: AuditAction, room_id: str, details: dict, actor_id: str | None) -> None:
        self.bus.publish(
            AuditEvent(
                action=action,
                entity=AuditEntity.ROOM,
                entity_id=room_id,
                details=details,
                actor_id=actor_id,
            )
        )

    def list_active(self) -> list[Room]:
        rooms = [r for r in self.store.list_rooms() if r.status == RoomStatus.ACTIVE]
        return sorted(rooms, key=lambda r: (r.building, r.floor, r.name))

    def list_all(self) -> list[Room]:
        return sorted(self.store.list_rooms(), key=lambda r: r.created_at, reverse=True)

    def get(self, room_id: str) -> Room | None:
        return self.store.find_room(room_id)

    def create(self, data: RoomCreate, actor_id: str | None = None) -> Room:
        room = self.store.save_room(Room(**data.model_dump()))
        self._audit(AuditAction.CREATE, room.id, {"name": room.name}, actor_id)
        return room

    def update(self, room_id: str, data: RoomUpdate, actor_id: str | None = None) -> Room:
        room = self._require(room_id)
        changes = data.model_dump(exclude_none=True)
        updated = self.store.save_room(room.model_copy(update=changes))
        self._audit(AuditAction.UPDATE, room_id, changes, actor_id)
        return updated

    def close(self, room_id: str, actor_id: str | None = None) -> Room:
        room = self._require(room_id)
        if room.status == RoomStatus.CLOSED:
            raise RoomAlreadyClosed()
        updated = self.store.save_room(room.model_copy(update={"status": RoomStatus.CLOSED}))
        self._audit(AuditAction.UPDATE, room_id, {"status": RoomStatus.CLOSED}, actor_id)
        return updated

    def toggle_status(self, room_id: str, actor_id: str | None = None) -> Room:
        """Flip a room between ACTIVE and CLOSED.

        A room with reservations starting from now on cannot be deactivated.
        """
        room = self._require(room_id)
        if room.status == RoomStatus.ACTIVE:
            now = self.clock()
            upcoming = [
                r
                for r in self.store.list_reservations()
                if r.room_id == room_id and r.start >= now
            ]
            if upcoming:
                raise RoomHasReservations(
                    "A room with upcoming reservations cannot be deactivated."
                )
            new_status = RoomStatus.CLOSED
        else:
            new_status = RoomStatus.ACTIVE

        updated = self.store.save_room(room.model_copy(update={"status": new_status}))
        self._audit(AuditAction.UPDATE, room_id, {"status": new_status}, actor_id)
        logger.info("Room %s is now %s", room_id, new_status)
        return updated

    def delete(self, room_id: str, actor_id: str | None = None) -> None:
        room = self._require(room_id)
        if any(r.room_id == room_id for r in self.store.list_reservations()):
            raise RoomHasReservations("A room with reservations cannot be deleted.")
        self.store.delete_room(room_id)
        self._audit(AuditAction.DELETE, room_id, {"name": room.name}, actor_id)
