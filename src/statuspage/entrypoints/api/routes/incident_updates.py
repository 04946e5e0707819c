"""Incident update API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from statuspage.core.domain_types import IncidentUpdate
from statuspage.entrypoints.api.deps import get_incident_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.incidents import IncidentService

router = APIRouter(prefix="/incident-updates", tags=["incident-updates"])

IncidentServiceDep = Annotated[IncidentService, Depends(get_incident_service)]


class IncidentUpdateCreate(BaseModel):
    """Progress update request."""

    incident_id: str | None = None
    message: str | None = None
    status: str | None = None


@router.get("/{incident_id}", response_model=list[IncidentUpdate])
async def list_incident_updates(
    incident_id: str,
    incidents: IncidentServiceDep,
) -> list[IncidentUpdate]:
    """List updates of an incident, newest first."""
    return await incidents.list_updates(incident_id)


@router.post("", response_model=IncidentUpdate, status_code=status.HTTP_201_CREATED)
async def create_incident_update(
    body: IncidentUpdateCreate,
    caller: CallerDep,
    incidents: IncidentServiceDep,
) -> IncidentUpdate:
    """Post a progress update to an incident.

    Requires the manage_incidents permission.
    """
    update, _ = await incidents.add_update(
        caller,
        incident_id=body.incident_id or "",
        message=body.message or "",
        status=body.status or "",
    )
    return update


@router.delete("/{update_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_incident_update(
    update_id: str,
    caller: CallerDep,
    incidents: IncidentServiceDep,
) -> Response:
    """Delete a progress update.

    Requires the manage_incidents permission.
    """
    await incidents.delete_update(caller, update_id)
    return Response(status_code=204)
