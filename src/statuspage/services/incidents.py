"""Incident commands and queries.

Every command follows the same order: access check, validation, storage
write, status reconciliation, then broadcast. Nothing is written before
validation passes, and nothing is broadcast before it is stored.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from statuspage.core.domain_types import (
    Incident,
    IncidentStatus,
    IncidentUpdate,
    Service,
    Severity,
)
from statuspage.core.events import (
    IncidentCreated,
    IncidentDeleted,
    IncidentUpdateCreated,
    IncidentUpdated,
)
from statuspage.core.exceptions import NotFoundError, ValidationError
from statuspage.core.interfaces import EventPublisher, StatusStore
from statuspage.core.rbac import (
    CallerContext,
    Permission,
    ensure_same_organization,
    require_organization,
    require_permission,
)
from statuspage.core.reconciler import StatusReconciler
from statuspage.core.visibility import filter_public_incidents

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class IncidentService:
    """Incident lifecycle on top of the store, reconciler and hub."""

    def __init__(
        self,
        store: StatusStore,
        publisher: EventPublisher,
        reconciler: StatusReconciler | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.publisher = publisher
        self.reconciler = reconciler or StatusReconciler(store, publisher)
        self.clock = clock

    # Queries

    async def get_incident(self, incident_id: str) -> Incident:
        """Get one incident."""
        incident = await self.store.find_incident_by_id(incident_id)
        if incident is None:
            raise NotFoundError("Incident not found")
        return incident

    async def list_incidents(self, organization_id: str) -> list[Incident]:
        """All incidents of an organization, unfiltered."""
        return await self.store.find_incidents_by_organization(organization_id)

    async def list_public_incidents(
        self, organization_id: str, now: datetime | None = None
    ) -> list[Incident]:
        """Incidents of an organization that belong on the public page."""
        incidents = await self.store.find_incidents_by_organization(organization_id)
        return filter_public_incidents(incidents, now or self.clock())

    async def list_updates(self, incident_id: str) -> list[IncidentUpdate]:
        """Updates of an incident, newest first."""
        return await self.store.list_incident_updates(incident_id)

    # Commands

    async def create_incident(
        self,
        caller: CallerContext,
        title: str,
        description: str,
        severity: Severity = Severity.MEDIUM,
        status: IncidentStatus = IncidentStatus.ACTIVE,
        affected_service_ids: list[str] | None = None,
    ) -> Incident:
        """Open an incident in the caller's organization."""
        require_permission(caller, Permission.MANAGE_INCIDENTS)
        if _blank(title) or _blank(description):
            raise ValidationError("Title and description are required")
        organization_id = require_organization(caller)
        service_ids = await self._check_services(organization_id, affected_service_ids or [])

        incident = await self.store.create_incident(
            organization_id=organization_id,
            created_by_id=caller.user_id,
            title=title.strip(),
            description=description.strip(),
            status=status,
            severity=severity,
            service_ids=service_ids,
        )
        logger.info(
            "incident_created",
            incident_id=incident.id,
            organization_id=organization_id,
            severity=severity.value,
            services=service_ids,
        )

        if await self.reconciler.apply_incident_effect(incident):
            incident = await self._reload(incident)

        await self.publisher.broadcast(IncidentCreated(incident=incident))
        return incident

    async def update_incident(
        self,
        caller: CallerContext,
        incident_id: str,
        title: str | None = None,
        description: str | None = None,
        status: IncidentStatus | None = None,
        severity: Severity | None = None,
        affected_service_ids: list[str] | None = None,
    ) -> Incident:
        """Edit an incident, resolving it when status becomes Resolved.

        ``resolved_at`` is stamped only on the Active to Resolved
        transition. A Resolved incident cannot be made Active again.
        """
        require_permission(caller, Permission.MANAGE_INCIDENTS)
        current = await self.get_incident(incident_id)
        ensure_same_organization(caller, current.organization_id)

        if title is not None and _blank(title):
            raise ValidationError("Title cannot be empty")
        if description is not None and _blank(description):
            raise ValidationError("Description cannot be empty")
        if not current.is_active and status == IncidentStatus.ACTIVE:
            raise ValidationError("Resolved incidents cannot be reopened")
        service_ids = None
        if affected_service_ids is not None:
            service_ids = await self._check_services(
                current.organization_id, affected_service_ids
            )

        resolving = current.is_active and status == IncidentStatus.RESOLVED
        updated = await self.store.update_incident(
            incident_id,
            title=title.strip() if title else None,
            description=description.strip() if description else None,
            status=status,
            severity=severity,
            resolved_at=self.clock() if resolving else None,
            service_ids=service_ids,
        )
        if updated is None:
            raise NotFoundError("Incident not found")
        logger.info(
            "incident_updated",
            incident_id=incident_id,
            status=updated.status.value,
            resolving=resolving,
        )

        if await self._reconcile_update(current, updated, resolving):
            updated = await self._reload(updated)

        await self.publisher.broadcast(IncidentUpdated(incident=updated))
        return updated

    async def delete_incident(self, caller: CallerContext, incident_id: str) -> Incident:
        """Delete an incident, releasing its services if it was Active."""
        require_permission(caller, Permission.MANAGE_INCIDENTS)
        incident = await self.get_incident(incident_id)
        ensure_same_organization(caller, incident.organization_id)

        if not await self.store.delete_incident(incident_id):
            raise NotFoundError("Incident not found")
        logger.info("incident_deleted", incident_id=incident_id, was_active=incident.is_active)

        if incident.is_active:
            await self.reconciler.release_incident_effect(incident)

        await self.publisher.broadcast(IncidentDeleted(incident=incident))
        return incident

    async def add_update(
        self,
        caller: CallerContext,
        incident_id: str,
        message: str,
        status: str,
    ) -> tuple[IncidentUpdate, Incident]:
        """Append a progress update.

        Returns:
            The stored update and the incident with its current services.
        """
        require_permission(caller, Permission.MANAGE_INCIDENTS)
        if _blank(incident_id) or _blank(message) or _blank(status):
            raise ValidationError("Incident ID, message, and status are required")
        incident = await self.get_incident(incident_id)
        ensure_same_organization(caller, incident.organization_id)

        update = await self.store.create_incident_update(
            incident_id=incident_id,
            created_by_id=caller.user_id,
            message=message.strip(),
            status=status.strip(),
        )
        logger.info("incident_update_created", incident_id=incident_id, update_id=update.id)

        await self.publisher.broadcast(IncidentUpdateCreated(update=update, incident=incident))
        return update, incident

    async def delete_update(self, caller: CallerContext, update_id: str) -> None:
        """Remove a progress update."""
        require_permission(caller, Permission.MANAGE_INCIDENTS)
        update = await self.store.find_incident_update_by_id(update_id)
        if update is None:
            raise NotFoundError("Incident update not found")
        incident = await self.store.find_incident_by_id(update.incident_id)
        if incident is not None:
            ensure_same_organization(caller, incident.organization_id)

        if not await self.store.delete_incident_update(update_id):
            raise NotFoundError("Incident update not found")
        logger.info("incident_update_deleted", update_id=update_id)

    # Helpers

    async def _check_services(self, organization_id: str, service_ids: list[str]) -> list[str]:
        """Validate that every referenced service exists in the organization."""
        unique_ids = list(dict.fromkeys(service_ids))
        for service_id in unique_ids:
            service = await self.store.find_service_by_id(service_id)
            if service is None or service.organization_id != organization_id:
                raise ValidationError(f"Unknown service: {service_id}")
        return unique_ids

    async def _reconcile_update(
        self, current: Incident, updated: Incident, resolving: bool
    ) -> list[Service]:
        """Bring service statuses in line after an incident edit."""
        if resolving:
            return await self.reconciler.release_incident_effect(
                updated, current.affected_services
            )
        if not updated.is_active:
            return []

        changed: list[Service] = []
        remaining = set(updated.affected_service_ids)
        dropped = [s for s in current.affected_services if s.id not in remaining]
        if dropped:
            changed += await self.reconciler.release_incident_effect(updated, dropped)

        if (
            updated.severity != current.severity
            or updated.affected_service_ids != current.affected_service_ids
        ):
            changed += await self.reconciler.apply_incident_effect(updated)
        return changed

    async def _reload(self, incident: Incident) -> Incident:
        """Re-read an incident so its embedded services carry fresh statuses."""
        return await self.store.find_incident_by_id(incident.id) or incident
