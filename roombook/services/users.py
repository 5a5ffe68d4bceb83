"""Service for resolving SSO identities to users and managing roles."""

from __future__ import annotations

import logging
from datetime import datetime

from roombook.config import Settings
from roombook.domain.bus import EventBus
from roombook.domain.errors import UserNotFound
from roombook.domain.events import AuditEvent
from roombook.domain.models import AuditAction, AuditEntity, SsoUserInfo, User, UserRole
from roombook.repos.base import ReservationStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: ReservationStore, bus: EventBus, settings: Settings) -> None:
        self.store = store
        self.bus = bus
        self.settings = settings

    def _is_dev_admin(self, employee_id: str) -> bool:
        return (
            not self.settings.is_production
            and self.settings.dev_admin_employee_id is not None
            and employee_id == self.settings.dev_admin_employee_id
        )

    def find_or_create(self, info: SsoUserInfo) -> User:
        """Upsert the user identified by the SSO employee id.

        Profile fields are refreshed on every login. Outside production the
        configured development admin is always promoted to ``ADMIN``.
        """
        existing = self.store.find_user_by_employee_id(info.employee_id)
        if existing is not None:
            update = {
                "name": info.name,
                "email": info.email,
                "company": info.company,
                "updated_at": datetime.now(),
            }
            if info.department:
                update["department"] = info.department
            if self._is_dev_admin(info.employee_id):
                update["role"] = UserRole.ADMIN
            return self.store.save_user(existing.model_copy(update=update))

        user = User(
            employee_id=info.employee_id,
            name=info.name,
            email=info.email,
            department=info.department,
            company=info.company,
            role=UserRole.ADMIN if self._is_dev_admin(info.employee_id) else UserRole.USER,
        )
        self.store.save_user(user)
        logger.info("Created user %s (%s)", user.id, user.employee_id)
        return user

    def get_by_employee_id(self, employee_id: str) -> User | None:
        return self.store.find_user_by_employee_id(employee_id)

    def list_users(self) -> list[User]:
        return sorted(self.store.list_users(), key=lambda u: (u.role, u.name))

    def update_role(self, user_id: str, role: UserRole, actor_id: str | None = None) -> User:
        user = self.store.find_user(user_id)
        if user is None:
            raise UserNotFound()
        updated = self.store.save_user(
            user.model_copy(update={"role": role, "updated_at": datetime.now()})
        )
        self.bus.publish(
            AuditEvent(
                action=AuditAction.UPDATE,
                entity=AuditEntity.USER,
                entity_id=user_id,
                details={"role": role, "previous_role": user.role},
                actor_id=actor_id,
            )
        )
        return updated
