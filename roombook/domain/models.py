"""Domain models for the meeting-room booking system."""

from __future__ import annotations

import datetime as dt
import uuid
from datetime import date, datetime
from enum import StrEnum
from typing import Annotated, Any

from dateutil.parser import isoparse
from pydantic import BaseModel, BeforeValidator, Field, model_validator


class RoomStatus(StrEnum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class UserRole(StrEnum):
    ADMIN = "ADMIN"
    USER = "USER"


class Cadence(StrEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


class DeleteScope(StrEnum):
    THIS = "this"
    ALL = "all"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditEntity(StrEnum):
    RESERVATION = "RESERVATION"
    ROOM = "ROOM"
    USER = "USER"


def _now() -> datetime:
    return datetime.now()


def _new_id() -> str:
    return str(uuid.uuid4())


def to_local_datetime(value: Any) -> Any:
    """Interpret *value* as wall-clock time.

    Any UTC offset in the input is dropped, never applied:
    ``2025-06-02T09:00+09:00`` and ``2025-06-02T09:00Z`` both become 09:00.
    """
    if isinstance(value, str):
        value = isoparse(value.strip())
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


# Naive datetime read by its literal hour/minute components.
LocalDateTime = Annotated[datetime, BeforeValidator(to_local_datetime)]


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Room(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    building: str
    floor: str
    capacity: int = Field(gt=0)
    equipment: list[str] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.ACTIVE
    created_at: datetime = Field(default_factory=_now)


class User(BaseModel):
    id: str = Field(default_factory=_new_id)
    employee_id: str
    name: str
    email: str | None = None
    department: str | None = None
    company: str | None = None
    role: UserRole = UserRole.USER
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Reservation(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_id: str
    user_id: str | None = None
    title: str
    start: LocalDateTime
    end: LocalDateTime
    group_id: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def _end_after_start(self) -> Reservation:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class ReservationDetail(Reservation):
    """A reservation with its room and owner joined in."""

    room: Room | None = None
    user: User | None = None


class RecurrenceGroup(BaseModel):
    id: str = Field(default_factory=_new_id)
    room_id: str
    user_id: str | None = None
    title: str
    start_date: date
    end_date: date
    cadence: Cadence = Cadence.DAILY
    week_days: list[int] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)


class AuditLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    action: AuditAction
    entity: AuditEntity
    entity_id: str
    details: dict = Field(default_factory=dict)
    actor_id: str | None = None
    created_at: datetime = Field(default_factory=_now)


# ---------------------------------------------------------------------------
# Recurrence expansion values
# ---------------------------------------------------------------------------


class Instance(BaseModel):
    start: datetime
    end: datetime


class ConflictItem(BaseModel):
    date: dt.date
    reason: str


class RecurrenceExpansion(BaseModel):
    instances: list[Instance] = Field(default_factory=list)
    conflicts: list[ConflictItem] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class RecurringOptions(BaseModel):
    end_date: date = Field(alias="endDate")
    cadence: Cadence = Cadence.DAILY
    week_days: list[int] | None = Field(default=None, alias="weekDays")
    skip_conflicts: bool = Field(default=False, alias="skipConflicts")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _valid_week_days(self) -> RecurringOptions:
        if self.week_days is not None:
            if not self.week_days:
                raise ValueError("weekDays must not be empty")
            if any(day < 0 or day > 6 for day in self.week_days):
                raise ValueError("weekDays entries must be between 0 (Mon) and 6 (Sun)")
        return self


class CreateReservationRequest(BaseModel):
    room_id: str = Field(alias="roomId")
    user_id: str | None = Field(default=None, alias="userId")
    title: str = Field(min_length=1)
    start: LocalDateTime = Field(alias="startAt")
    end: LocalDateTime = Field(alias="endAt")
    recurring: RecurringOptions | None = None

    model_config = {"populate_by_name": True}


class UpdateReservationRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    start: LocalDateTime | None = Field(default=None, alias="startAt")
    end: LocalDateTime | None = Field(default=None, alias="endAt")

    model_config = {"populate_by_name": True}

    @property
    def changes_time(self) -> bool:
        return self.start is not None or self.end is not None


class ReservationQuery(BaseModel):
    room_id: str | None = None
    date: dt.date | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    building: str
    floor: str
    capacity: int = Field(gt=0)
    equipment: list[str] = Field(default_factory=list)
    status: RoomStatus = RoomStatus.ACTIVE


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    building: str | None = None
    floor: str | None = None
    capacity: int | None = Field(default=None, gt=0)
    equipment: list[str] | None = None


class SsoUserInfo(BaseModel):
    employee_id: str = Field(alias="employeeId")
    name: str
    email: str | None = None
    department: str | None = Field(default=None, alias="dept")
    company: str | None = None

    model_config = {"populate_by_name": True}


class UserRoleUpdate(BaseModel):
    role: UserRole


class ErrorResponse(BaseModel):
    """JSON body returned for every ``BookingError``."""

    message: str
    code: str
    # Only set for CONFLICT_RECURRING.
    conflicts: list[ConflictItem] | None = None
