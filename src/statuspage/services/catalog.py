"""Service catalog: CRUD for the services shown on a status page."""

import structlog

from statuspage.core.domain_types import Service, ServiceStatus
from statuspage.core.events import ServiceCreated, ServiceDeleted, ServiceUpdated
from statuspage.core.exceptions import NotFoundError, ValidationError
from statuspage.core.interfaces import EventPublisher, StatusStore
from statuspage.core.rbac import (
    CallerContext,
    Permission,
    ensure_same_organization,
    require_organization,
    require_permission,
)

logger = structlog.get_logger()


class ServiceCatalog:
    """Manages services and announces every change to live viewers."""

    def __init__(self, store: StatusStore, publisher: EventPublisher):
        self.store = store
        self.publisher = publisher

    async def list_services(self, organization_id: str) -> list[Service]:
        """Services of an organization, oldest first."""
        return await self.store.list_services(organization_id)

    async def get_service(self, service_id: str) -> Service:
        """Get one service."""
        service = await self.store.find_service_by_id(service_id)
        if service is None:
            raise NotFoundError("Service not found")
        return service

    async def create_service(
        self,
        caller: CallerContext,
        name: str,
        description: str,
        status: ServiceStatus | None = None,
    ) -> Service:
        """Create a service in the caller's organization."""
        require_permission(caller, Permission.MANAGE_SERVICES)
        if not name or not name.strip() or not description or not description.strip():
            raise ValidationError("Name and description are required")
        organization_id = require_organization(caller)

        service = await self.store.create_service(
            organization_id=organization_id,
            name=name.strip(),
            description=description.strip(),
            status=status or ServiceStatus.OPERATIONAL,
        )
        logger.info("service_created", service_id=service.id, organization_id=organization_id)

        await self.publisher.broadcast(ServiceCreated(service=service))
        return service

    async def update_service(
        self,
        caller: CallerContext,
        service_id: str,
        name: str | None = None,
        description: str | None = None,
        status: ServiceStatus | None = None,
    ) -> Service:
        """Update a service. Fields left as None are unchanged."""
        require_permission(caller, Permission.MANAGE_SERVICES)
        current = await self.get_service(service_id)
        ensure_same_organization(caller, current.organization_id)
        if name is not None and not name.strip():
            raise ValidationError("Name cannot be empty")

        service = await self.store.update_service(
            service_id,
            name=name.strip() if name else None,
            description=description,
            status=status,
        )
        if service is None:
            raise NotFoundError("Service not found")
        logger.info("service_updated", service_id=service_id, status=service.status.value)

        await self.publisher.broadcast(ServiceUpdated(service=service))
        return service

    async def delete_service(self, caller: CallerContext, service_id: str) -> Service:
        """Delete a service. Incidents referencing it simply lose the reference."""
        require_permission(caller, Permission.MANAGE_SERVICES)
        service = await self.get_service(service_id)
        ensure_same_organization(caller, service.organization_id)

        if not await self.store.delete_service(service_id):
            raise NotFoundError("Service not found")
        logger.info("service_deleted", service_id=service_id)

        await self.publisher.broadcast(ServiceDeleted(service=service))
        return service
