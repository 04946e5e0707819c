"""Service status reconciliation.

A service's displayed status is derived from the incidents that affect it.
The reconciler keeps the cached ``Service.status`` in line after each
incident mutation:

- An Active incident stamps its severity-mapped status on every affected
  service, overwriting whatever was there (last writer wins; concurrent
  incidents are not max-aggregated).
- When an incident stops affecting a service (resolved, deleted, or the
  service dropped from its set) the service returns to Operational only
  if no other Active incident references it. Otherwise the current status
  is left as is.

Every status write is followed by a ``service_updated`` event. A service
that vanishes mid-pass is logged and skipped; the rest of the pass still
runs.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from statuspage.core.domain_types import Incident, Service, ServiceStatus
from statuspage.core.events import ServiceUpdated
from statuspage.core.exceptions import NotFoundError, TransientStorageError
from statuspage.core.interfaces import EventPublisher, StatusStore

logger = structlog.get_logger()


class StatusReconciler:
    """Derives service status from incident lifecycle changes."""

    def __init__(self, store: StatusStore, publisher: EventPublisher) -> None:
        """Initialize the reconciler.

        Args:
            store: Storage handle used for lookups and status writes.
            publisher: Receives a ServiceUpdated event per status write.
        """
        self._store = store
        self._publisher = publisher

    async def apply_incident_effect(self, incident: Incident) -> list[Service]:
        """Stamp an Active incident's severity on its affected services.

        Returns:
            The services whose status was written.
        """
        if not incident.is_active or not incident.affected_services:
            return []

        new_status = incident.severity.service_status
        updated: list[Service] = []
        for service_id in incident.affected_service_ids:
            service = await self._write_status(service_id, new_status, incident.id)
            if service is not None:
                updated.append(service)

        logger.info(
            "incident_effect_applied",
            incident_id=incident.id,
            severity=incident.severity.value,
            status=new_status.value,
            services=[s.id for s in updated],
        )
        return updated

    async def release_incident_effect(
        self,
        incident: Incident,
        services: Iterable[Service] | None = None,
    ) -> list[Service]:
        """Return services to Operational once nothing else affects them.

        Args:
            incident: The incident that no longer affects the services.
            services: Services to release. Defaults to the incident's
                affected services.

        Returns:
            The services that were set back to Operational.
        """
        targets = list(incident.affected_services if services is None else services)
        restored: list[Service] = []
        for target in targets:
            try:
                others = await self._store.find_active_incidents_affecting_service(
                    target.id, exclude_incident_id=incident.id
                )
            except (NotFoundError, TransientStorageError) as e:
                logger.warning(
                    "reconcile_lookup_failed",
                    incident_id=incident.id,
                    service_id=target.id,
                    error=str(e),
                )
                continue

            if others:
                logger.debug(
                    "service_still_affected",
                    service_id=target.id,
                    incident_ids=[other.id for other in others],
                )
                continue

            service = await self._write_status(target.id, ServiceStatus.OPERATIONAL, incident.id)
            if service is not None:
                restored.append(service)

        logger.info(
            "incident_effect_released",
            incident_id=incident.id,
            restored=[s.id for s in restored],
        )
        return restored

    async def _write_status(
        self, service_id: str, status: ServiceStatus, incident_id: str
    ) -> Service | None:
        """Write one service status and publish it; None if the write failed."""
        try:
            service = await self._store.update_service_status(service_id, status)
        except (NotFoundError, TransientStorageError) as e:
            logger.warning(
                "service_status_write_failed",
                incident_id=incident_id,
                service_id=service_id,
                error=str(e),
            )
            return None

        if service is None:
            logger.warning(
                "service_missing_during_reconcile",
                incident_id=incident_id,
                service_id=service_id,
            )
            return None

        await self._publisher.broadcast(ServiceUpdated(service=service))
        return service
