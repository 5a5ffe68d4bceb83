"""Domain event handlers, wired up at application startup."""

from __future__ import annotations

import logging

from roombook.domain.bus import EventBus
from roombook.domain.events import AuditEvent
from roombook.domain.models import AuditLogEntry
from roombook.repos.memory import AuditLogRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the audit log."""

    def __init__(self, bus: EventBus, audit_repo: AuditLogRepository) -> None:
        self.bus = bus
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(AuditEvent, self.on_audit_event)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_audit_event(self, event: AuditEvent) -> None:
        self.audit_repo.add(
            AuditLogEntry(
                action=event.action,
                entity=event.entity,
                entity_id=event.entity_id,
                details=event.details,
                actor_id=event.actor_id,
            )
        )
        logger.debug("Audit %s %s %s", event.action, event.entity, event.entity_id)
