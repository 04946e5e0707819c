"""Timeline API route."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from statuspage.core.timeline import TimelineBuilder, TimelineEntry
from statuspage.entrypoints.api.deps import (
    Settings,
    get_organization_service,
    get_settings,
    get_timeline_builder,
)
from statuspage.services.tenant import OrganizationService

router = APIRouter(prefix="/timeline", tags=["timeline"])


@router.get("", response_model=list[TimelineEntry])
async def get_timeline(
    timeline: Annotated[TimelineBuilder, Depends(get_timeline_builder)],
    organizations: Annotated[OrganizationService, Depends(get_organization_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    org: Annotated[str, Query(description="Organization slug")],
    days: Annotated[int | None, Query(description="Lookback window in days")] = None,
) -> list[TimelineEntry]:
    """Incident lifecycle entries of the last ``days`` days, newest first."""
    organization = await organizations.get_organization_by_slug(org)
    lookback = days if days is not None else settings.timeline_default_days
    return await timeline.build(organization.id, lookback_days=lookback)
