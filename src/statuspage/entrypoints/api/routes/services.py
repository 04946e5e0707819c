"""Service catalog API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from statuspage.core.domain_types import Service, ServiceStatus
from statuspage.entrypoints.api.deps import get_catalog, get_organization_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.catalog import ServiceCatalog
from statuspage.services.tenant import OrganizationService

router = APIRouter(prefix="/services", tags=["services"])

# Annotated types for dependency injection
CatalogDep = Annotated[ServiceCatalog, Depends(get_catalog)]
OrgServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]


class ServiceCreate(BaseModel):
    """Service creation request."""

    name: str | None = None
    description: str | None = None
    status: ServiceStatus | None = None


class ServiceUpdate(BaseModel):
    """Service update request. Omitted fields are unchanged."""

    name: str | None = None
    description: str | None = None
    status: ServiceStatus | None = None


@router.get("", response_model=list[Service])
async def list_services(
    catalog: CatalogDep,
    organizations: OrgServiceDep,
    org: Annotated[str, Query(description="Organization slug")],
) -> list[Service]:
    """List services of an organization, oldest first."""
    organization = await organizations.get_organization_by_slug(org)
    return await catalog.list_services(organization.id)


@router.get("/{service_id}", response_model=Service)
async def get_service(service_id: str, catalog: CatalogDep) -> Service:
    """Get a service by ID."""
    return await catalog.get_service(service_id)


@router.post("", response_model=Service, status_code=status.HTTP_201_CREATED)
async def create_service(body: ServiceCreate, caller: CallerDep, catalog: CatalogDep) -> Service:
    """Create a service in the caller's organization.

    Requires the manage_services permission.
    """
    return await catalog.create_service(
        caller,
        name=body.name or "",
        description=body.description or "",
        status=body.status,
    )


@router.put("/{service_id}", response_model=Service)
async def update_service(
    service_id: str,
    body: ServiceUpdate,
    caller: CallerDep,
    catalog: CatalogDep,
) -> Service:
    """Update a service.

    Requires the manage_services permission.
    """
    return await catalog.update_service(
        caller,
        service_id,
        name=body.name,
        description=body.description,
        status=body.status,
    )


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_service(service_id: str, caller: CallerDep, catalog: CatalogDep) -> Response:
    """Delete a service.

    Requires the manage_services permission.
    """
    await catalog.delete_service(caller, service_id)
    return Response(status_code=204)
