"""FastAPI application entry point for the meeting-room booking service."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from roombook.config import Settings, configure_logging
from roombook.domain.bus import EventBus
from roombook.domain.errors import BookingError, RecurrenceConflict
from roombook.domain.handlers import HandlerRegistry
from roombook.domain.models import (
    AuditLogEntry,
    CreateReservationRequest,
    DeleteScope,
    ErrorResponse,
    ReservationDetail,
    ReservationQuery,
    Room,
    RoomCreate,
    RoomUpdate,
    SsoUserInfo,
    UpdateReservationRequest,
    User,
    UserRole,
    UserRoleUpdate,
)
from roombook.repos.memory import AuditLogRepository, create_store
from roombook.services.calendar import DEFAULT_CALENDAR, HolidayCalendar
from roombook.services.reservations import ReservationService
from roombook.services.rooms import RoomService
from roombook.services.users import UserService

logger = logging.getLogger(__name__)

settings = Settings.from_env()
configure_logging(settings)

app = FastAPI(title="Meeting Room Booking Service")

# ── Singletons (created at import time for simplicity) ────────────────
calendar = (
    HolidayCalendar.from_json(settings.holiday_file) if settings.holiday_file else DEFAULT_CALENDAR
)
event_bus = EventBus()
store = create_store(seed=not settings.is_production)
audit_repo = AuditLogRepository()

handler_registry = HandlerRegistry(bus=event_bus, audit_repo=audit_repo)

reservation_service = ReservationService(store, event_bus, settings=settings, calendar=calendar)
room_service = RoomService(store, event_bus)
user_service = UserService(store, event_bus, settings)


# ── Identity (stand-in for the SSO layer) ─────────────────────────────


class Requester:
    def __init__(self, employee_id: str | None, role: UserRole) -> None:
        self.employee_id = employee_id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def user_id(self) -> str | None:
        if self.employee_id is None:
            return None
        user = user_service.get_by_employee_id(self.employee_id)
        return user.id if user else None


def get_requester(x_employee_id: str | None = Header(default=None)) -> Requester:
    """Resolve the caller; the role always comes from the stored user record."""
    user = user_service.get_by_employee_id(x_employee_id) if x_employee_id else None
    return Requester(x_employee_id, user.role if user else UserRole.USER)


def require_login(requester: Requester = Depends(get_requester)) -> Requester:
    if requester.employee_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return requester


def require_admin(requester: Requester = Depends(require_login)) -> Requester:
    if not requester.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return requester


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(BookingError)
def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    body = ErrorResponse(
        message=exc.message,
        code=exc.code,
        conflicts=exc.conflicts if isinstance(exc, RecurrenceConflict) else None,
    )
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=body.model_dump(mode="json", exclude_none=True)
    )


# ── Rooms ─────────────────────────────────────────────────────────────


@app.get("/rooms", response_model=list[Room])
def list_rooms() -> list[Room]:
    """Return bookable rooms ordered by building, floor and name."""
    return room_service.list_active()


@app.get("/rooms/all", response_model=list[Room])
def list_all_rooms(_: Requester = Depends(require_admin)) -> list[Room]:
    return room_service.list_all()


@app.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: str) -> Room:
    room = room_service.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


@app.post("/rooms", response_model=Room, status_code=201)
def create_room(body: RoomCreate, requester: Requester = Depends(require_admin)) -> Room:
    return room_service.create(body, actor_id=requester.user_id)


@app.patch("/rooms/{room_id}", response_model=Room)
def update_room(
    room_id: str, body: RoomUpdate, requester: Requester = Depends(require_admin)
) -> Room:
    return room_service.update(room_id, body, actor_id=requester.user_id)


@app.post("/rooms/{room_id}/close", response_model=Room)
def close_room(room_id: str, requester: Requester = Depends(require_admin)) -> Room:
    return room_service.close(room_id, actor_id=requester.user_id)


@app.post("/rooms/{room_id}/toggle", response_model=Room)
def toggle_room(room_id: str, requester: Requester = Depends(require_admin)) -> Room:
    return room_service.toggle_status(room_id, actor_id=requester.user_id)


@app.delete("/rooms/{room_id}", status_code=204)
def delete_room(room_id: str, requester: Requester = Depends(require_admin)) -> Response:
    room_service.delete(room_id, actor_id=requester.user_id)
    return Response(status_code=204)


# ── Reservations ──────────────────────────────────────────────────────


@app.get("/reservations", response_model=list[ReservationDetail])
def list_reservations(
    roomId: str | None = None,
    date: date | None = None,
    startDate: date | None = None,
    endDate: date | None = None,
) -> list[ReservationDetail]:
    query = ReservationQuery(room_id=roomId, date=date, start_date=startDate, end_date=endDate)
    return reservation_service.list(query)


@app.get("/reservations/{reservation_id}", response_model=ReservationDetail)
def get_reservation(reservation_id: str) -> ReservationDetail:
    reservation = reservation_service.get(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@app.post(
    "/reservations",
    response_model=ReservationDetail,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_reservation(
    body: CreateReservationRequest, requester: Requester = Depends(require_login)
) -> ReservationDetail:
    """Book a room; the owner is always the authenticated employee.

    A recurring request with already-booked dates answers 409 with code
    ``CONFLICT_RECURRING`` and the conflicting dates, so the client can retry
    with ``skipConflicts``.
    """
    body = body.model_copy(update={"user_id": requester.employee_id})
    return reservation_service.create(body)


@app.patch("/reservations/{reservation_id}", response_model=ReservationDetail)
def update_reservation(
    reservation_id: str,
    body: UpdateReservationRequest,
    requester: Requester = Depends(require_login),
) -> ReservationDetail:
    return reservation_service.update(
        reservation_id,
        body,
        requester_employee_id=None if requester.is_admin else requester.employee_id,
        actor_id=requester.user_id,
    )


@app.delete("/reservations/{reservation_id}", status_code=204)
def delete_reservation(
    reservation_id: str,
    scope: DeleteScope = DeleteScope.THIS,
    requester: Requester = Depends(require_login),
) -> Response:
    reservation_service.delete(
        reservation_id,
        requester_employee_id=None if requester.is_admin else requester.employee_id,
        scope=scope,
        actor_id=requester.user_id,
    )
    return Response(status_code=204)


# ── Users ─────────────────────────────────────────────────────────────


@app.post("/auth/login", response_model=User)
def login(body: SsoUserInfo) -> User:
    """Upsert the user described by the identity provider."""
    return user_service.find_or_create(body)


@app.get("/users", response_model=list[User])
def list_users(_: Requester = Depends(require_admin)) -> list[User]:
    return user_service.list_users()


@app.patch("/users/{user_id}/role", response_model=User)
def update_user_role(
    user_id: str, body: UserRoleUpdate, requester: Requester = Depends(require_admin)
) -> User:
    return user_service.update_role(user_id, body.role, actor_id=requester.user_id)


# ── Audit ─────────────────────────────────────────────────────────────


@app.get("/audit-logs", response_model=list[AuditLogEntry])
def list_audit_logs(
    limit: int | None = None, _: Requester = Depends(require_admin)
) -> list[AuditLogEntry]:
    return audit_repo.list_recent(limit)
