"""Domain events emitted by the booking services."""

from __future__ import annotations

from pydantic import BaseModel, Field

from roombook.domain.models import AuditAction, AuditEntity


class AuditEvent(BaseModel):
    """Fired after a reservation, room or user was created, changed or removed."""

    action: AuditAction
    entity: AuditEntity
    entity_id: str
    details: dict = Field(default_factory=dict)
    actor_id: str | None = None
