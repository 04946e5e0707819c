"""Incident API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import AliasChoices, BaseModel, Field

from statuspage.core.domain_types import Incident, IncidentStatus, Severity
from statuspage.entrypoints.api.deps import get_incident_service, get_organization_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.incidents import IncidentService
from statuspage.services.tenant import OrganizationService

router = APIRouter(prefix="/incidents", tags=["incidents"])

# Annotated types for dependency injection
IncidentServiceDep = Annotated[IncidentService, Depends(get_incident_service)]
OrgServiceDep = Annotated[OrganizationService, Depends(get_organization_service)]

# Clients send either spelling of the affected service list.
_SERVICE_IDS = AliasChoices("affected_services", "affectedServiceIds")


class IncidentCreate(BaseModel):
    """Incident creation request."""

    title: str | None = None
    description: str | None = None
    severity: Severity = Severity.MEDIUM
    status: IncidentStatus = IncidentStatus.ACTIVE
    affected_services: list[str] = Field(default_factory=list, validation_alias=_SERVICE_IDS)


class IncidentUpdateRequest(BaseModel):
    """Incident update request. Omitted fields are unchanged."""

    title: str | None = None
    description: str | None = None
    severity: Severity | None = None
    status: IncidentStatus | None = None
    affected_services: list[str] | None = Field(default=None, validation_alias=_SERVICE_IDS)


@router.get("/public", response_model=list[Incident])
async def list_public_incidents(
    incidents: IncidentServiceDep,
    organizations: OrgServiceDep,
    org: Annotated[str, Query(description="Organization slug")],
) -> list[Incident]:
    """Incidents shown on an organization's public status page.

    Active incidents are always listed. Resolved incidents are listed only
    when they lasted longer than five minutes.
    """
    organization = await organizations.get_organization_by_slug(org)
    return await incidents.list_public_incidents(organization.id)


@router.get("", response_model=list[Incident])
async def list_incidents(
    caller: CallerDep,
    incidents: IncidentServiceDep,
    organizations: OrgServiceDep,
    org: Annotated[str | None, Query(description="Organization slug (super admins)")] = None,
) -> list[Incident]:
    """List every incident of the caller's organization."""
    organization_id = await organizations.scoped_organization_id(caller, org)
    return await incidents.list_incidents(organization_id)


@router.get("/{incident_id}", response_model=Incident)
async def get_incident(incident_id: str, incidents: IncidentServiceDep) -> Incident:
    """Get an incident by ID."""
    return await incidents.get_incident(incident_id)


@router.post("", response_model=Incident, status_code=status.HTTP_201_CREATED)
async def create_incident(
    body: IncidentCreate,
    caller: CallerDep,
    incidents: IncidentServiceDep,
) -> Incident:
    """Open an incident.

    Requires the manage_incidents permission. Affected services move to
    the status implied by the severity.
    """
    return await incidents.create_incident(
        caller,
        title=body.title or "",
        description=body.description or "",
        severity=body.severity,
        status=body.status,
        affected_service_ids=body.affected_services,
    )


@router.put("/{incident_id}", response_model=Incident)
async def update_incident(
    incident_id: str,
    body: IncidentUpdateRequest,
    caller: CallerDep,
    incidents: IncidentServiceDep,
) -> Incident:
    """Update an incident. Setting status to Resolved releases its services.

    Requires the manage_incidents permission.
    """
    return await incidents.update_incident(
        caller,
        incident_id,
        title=body.title,
        description=body.description,
        status=body.status,
        severity=body.severity,
        affected_service_ids=body.affected_services,
    )


@router.delete("/{incident_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_incident(
    incident_id: str,
    caller: CallerDep,
    incidents: IncidentServiceDep,
) -> Response:
    """Delete an incident.

    Requires the manage_incidents permission.
    """
    await incidents.delete_incident(caller, incident_id)
    return Response(status_code=204)
