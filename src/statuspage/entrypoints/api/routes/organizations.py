"""Organization API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from statuspage.core.domain_types import Organization
from statuspage.entrypoints.api.deps import get_organization_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.tenant import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])

OrgServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]


class OrganizationCreate(BaseModel):
    """Organization creation request."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None


class OrganizationUpdate(BaseModel):
    """Organization update request."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None


@router.get("/current", response_model=Organization)
async def get_current_organization(
    caller: CallerDep,
    organizations: OrgServiceDep,
) -> Organization:
    """Get the caller's organization."""
    return await organizations.get_current_organization(caller)


@router.get("/by-slug/{slug}", response_model=Organization)
async def get_organization_by_slug(slug: str, organizations: OrgServiceDep) -> Organization:
    """Look up an organization for its public page."""
    return await organizations.get_organization_by_slug(slug)


@router.get("", response_model=list[Organization])
async def list_organizations(
    caller: CallerDep,
    organizations: OrgServiceDep,
) -> list[Organization]:
    """List all organizations.

    Requires super admin.
    """
    return await organizations.list_organizations(caller)


@router.post("", response_model=Organization, status_code=status.HTTP_201_CREATED)
async def create_organization(
    body: OrganizationCreate,
    caller: CallerDep,
    organizations: OrgServiceDep,
) -> Organization:
    """Create an organization. The slug is derived from the name when omitted.

    Requires super admin.
    """
    return await organizations.create_organization(
        caller, name=body.name or "", slug=body.slug, description=body.description
    )


@router.put("/{organization_id}", response_model=Organization)
async def update_organization(
    organization_id: str,
    body: OrganizationUpdate,
    caller: CallerDep,
    organizations: OrgServiceDep,
) -> Organization:
    """Update an organization.

    Requires org admin of that organization, or super admin.
    """
    return await organizations.update_organization(
        caller,
        organization_id,
        name=body.name,
        slug=body.slug,
        description=body.description,
    )


@router.delete(
    "/{organization_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
async def delete_organization(
    organization_id: str,
    caller: CallerDep,
    organizations: OrgServiceDep,
) -> Response:
    """Delete an organization with everything it owns.

    Requires super admin.
    """
    await organizations.delete_organization(caller, organization_id)
    return Response(status_code=204)
