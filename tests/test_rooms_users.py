"""Tests for room administration and user management."""

from __future__ import annotations

from datetime import datetime

import pytest

from roombook.config import Settings
from roombook.domain.bus import EventBus
from roombook.domain.errors import (
    RoomAlreadyClosed,
    RoomHasReservations,
    RoomNotFound,
    UserNotFound,
)
from roombook.domain.handlers import HandlerRegistry
from roombook.domain.models import (
    AuditEntity,
    Reservation,
    RoomCreate,
    RoomStatus,
    RoomUpdate,
    SsoUserInfo,
    UserRole,
)
from roombook.repos.memory import AuditLogRepository, InMemoryStore
from roombook.services.rooms import RoomService
from roombook.services.users import UserService

_NOW = datetime(2025, 6, 2, 12, 0)


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def audit_repo():
    return AuditLogRepository()


@pytest.fixture()
def bus(audit_repo):
    bus = EventBus()
    HandlerRegistry(bus=bus, audit_repo=audit_repo)
    return bus


@pytest.fixture()
def rooms(store, bus):
    return RoomService(store, bus, clock=lambda: _NOW)


def _room(rooms: RoomService, name: str, building: str = "HQ", floor: str = "3F"):
    return rooms.create(RoomCreate(name=name, building=building, floor=floor, capacity=6))


def _reserve(store: InMemoryStore, room_id: str, start: datetime, end: datetime) -> None:
    store.create_reservation(Reservation(room_id=room_id, title="Booked", start=start, end=end))


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------


def test_list_active_orders_by_location(rooms):
    _room(rooms, "Vega", building="HQ", floor="5F")
    _room(rooms, "Altair", building="HQ", floor="3F")
    closed = _room(rooms, "Deneb", building="Annex")
    rooms.close(closed.id)

    assert [r.name for r in rooms.list_active()] == ["Altair", "Vega"]
    assert len(rooms.list_all()) == 3


def test_update_only_changes_given_fields(rooms):
    room = _room(rooms, "Vega")
    updated = rooms.update(room.id, RoomUpdate(capacity=12, equipment=["projector"]))
    assert updated.capacity == 12
    assert updated.equipment == ["projector"]
    assert updated.name == "Vega"


def test_unknown_room_raises(rooms):
    with pytest.raises(RoomNotFound):
        rooms.update("missing", RoomUpdate(name="x"))
    with pytest.raises(RoomNotFound):
        rooms.delete("missing")


def test_close_twice_fails(rooms):
    room = _room(rooms, "Vega")
    rooms.close(room.id)
    with pytest.raises(RoomAlreadyClosed):
        rooms.close(room.id)


def test_toggle_refuses_with_upcoming_reservations(rooms, store):
    room = _room(rooms, "Vega")
    _reserve(store, room.id, datetime(2025, 6, 3, 9), datetime(2025, 6, 3, 10))
    with pytest.raises(RoomHasReservations):
        rooms.toggle_status(room.id)


def test_toggle_ignores_past_reservations(rooms, store):
    room = _room(rooms, "Vega")
    _reserve(store, room.id, datetime(2025, 6, 2, 9), datetime(2025, 6, 2, 10))

    assert rooms.toggle_status(room.id).status == RoomStatus.CLOSED
    assert rooms.toggle_status(room.id).status == RoomStatus.ACTIVE


def test_delete_refuses_room_with_reservations(rooms, store):
    room = _room(rooms, "Vega")
    _reserve(store, room.id, datetime(2025, 6, 2, 9), datetime(2025, 6, 2, 10))
    with pytest.raises(RoomHasReservations):
        rooms.delete(room.id)

    empty = _room(rooms, "Altair")
    rooms.delete(empty.id)
    assert rooms.get(empty.id) is None


def test_room_changes_are_audited(rooms, audit_repo):
    room = _room(rooms, "Vega")
    rooms.close(room.id)
    entries = audit_repo.list_for_entity(room.id)
    assert len(entries) == 2
    assert all(e.entity == AuditEntity.ROOM for e in entries)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _users(store, bus, **settings) -> UserService:
    return UserService(store, bus, Settings(**settings))


def test_find_or_create_inserts_then_refreshes(store, bus):
    users = _users(store, bus)
    created = users.find_or_create(SsoUserInfo(employee_id="E100", name="Kim", dept="Sales"))
    assert created.role == UserRole.USER
    assert created.department == "Sales"

    refreshed = users.find_or_create(
        SsoUserInfo(employee_id="E100", name="Kim Minji", email="kim@example.com")
    )
    assert refreshed.id == created.id
    assert refreshed.name == "Kim Minji"
    assert refreshed.department == "Sales"
    assert len(store.list_users()) == 1


def test_dev_admin_promoted_outside_production(store, bus):
    users = _users(store, bus, dev_admin_employee_id="E001")
    assert users.find_or_create(SsoUserInfo(employee_id="E001", name="Dev")).role == UserRole.ADMIN


def test_dev_admin_not_promoted_in_production(store, bus):
    users = _users(store, bus, env="production", dev_admin_employee_id="E001")
    assert users.find_or_create(SsoUserInfo(employee_id="E001", name="Dev")).role == UserRole.USER


def test_update_role_and_listing_order(store, bus, audit_repo):
    users = _users(store, bus)
    kim = users.find_or_create(SsoUserInfo(employee_id="E100", name="Kim"))
    users.find_or_create(SsoUserInfo(employee_id="E200", name="Ahn"))

    users.update_role(kim.id, UserRole.ADMIN, actor_id="someone")

    assert [u.name for u in users.list_users()] == ["Kim", "Ahn"]
    assert audit_repo.list_for_entity(kim.id)[0].actor_id == "someone"


def test_update_role_unknown_user(store, bus):
    with pytest.raises(UserNotFound):
        _users(store, bus).update_role("missing", UserRole.ADMIN)
