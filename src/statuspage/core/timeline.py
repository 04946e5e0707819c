"""Activity timeline for an organization.

Merges incident lifecycle events (created, progress updates, resolved) into
one feed ordered newest first. The feed is rebuilt on every call.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

from statuspage.core.domain_types import Incident, IncidentUpdate, Severity
from statuspage.core.exceptions import ValidationError
from statuspage.core.interfaces import StatusStore

logger = structlog.get_logger()

DEFAULT_LOOKBACK_DAYS = 7

TimelineEntryType = Literal["incident_created", "incident_update", "incident_resolved"]


class TimelineEntry(BaseModel):
    """One item of the timeline feed.

    Attributes:
        severity: Set on incident_created entries.
        affected_services: Service names; set on created and resolved entries.
        status: Update status label; set on incident_update entries.
        created_by: Name of the creator or updater, when known.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: TimelineEntryType
    timestamp: datetime
    incident_id: str
    title: str
    description: str
    severity: Severity | None = None
    affected_services: list[str] | None = None
    status: str | None = None
    created_by: str | None = None


def _service_names(incident: Incident) -> list[str]:
    return [service.name for service in incident.affected_services]


def _entries_for(incident: Incident, updates: Iterable[IncidentUpdate]) -> list[TimelineEntry]:
    entries = [
        TimelineEntry(
            id=f"incident-created-{incident.id}",
            type="incident_created",
            timestamp=incident.created_at,
            incident_id=incident.id,
            title=f"Incident: {incident.title}",
            description=incident.description,
            severity=incident.severity,
            affected_services=_service_names(incident),
            created_by=incident.created_by.name if incident.created_by else None,
        )
    ]

    for update in updates:
        entries.append(
            TimelineEntry(
                id=f"update-{update.id}",
                type="incident_update",
                timestamp=update.created_at,
                incident_id=incident.id,
                title=f"Update: {incident.title}",
                description=update.message,
                status=update.status,
                created_by=update.created_by.name if update.created_by else None,
            )
        )

    if incident.resolved_at is not None:
        entries.append(
            TimelineEntry(
                id=f"incident-resolved-{incident.id}",
                type="incident_resolved",
                timestamp=incident.resolved_at,
                incident_id=incident.id,
                title=f"Resolved: {incident.title}",
                description="Incident has been resolved",
                affected_services=_service_names(incident),
            )
        )
    return entries


def build_timeline_entries(
    incidents: Iterable[Incident],
    updates_by_incident: Mapping[str, Iterable[IncidentUpdate]],
) -> list[TimelineEntry]:
    """Merge the entries of all incidents, newest first.

    The sort is stable, so entries with equal timestamps keep the order
    in which they were emitted.
    """
    timeline: list[TimelineEntry] = []
    for incident in incidents:
        timeline.extend(_entries_for(incident, updates_by_incident.get(incident.id, ())))
    timeline.sort(key=lambda entry: entry.timestamp, reverse=True)
    return timeline


class TimelineBuilder:
    """Builds the timeline of one organization from storage."""

    def __init__(self, store: StatusStore) -> None:
        """Initialize the builder with a storage handle."""
        self._store = store

    async def build(
        self,
        organization_id: str,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        now: datetime | None = None,
    ) -> list[TimelineEntry]:
        """Build the timeline for incidents created within the lookback window.

        Args:
            organization_id: Organization whose incidents are included.
            lookback_days: Size of the window ending at ``now``.
            now: End of the window. Defaults to the current time.

        Returns:
            Timeline entries, newest first.

        Raises:
            ValidationError: If lookback_days is not positive.
        """
        if lookback_days <= 0:
            raise ValidationError("days must be a positive integer")

        now = now or datetime.now(UTC)
        since = now - timedelta(days=lookback_days)
        incidents = [
            incident
            for incident in await self._store.find_incidents_by_organization(
                organization_id, created_since=since
            )
            if incident.created_at <= now
        ]

        updates_by_incident: dict[str, list[IncidentUpdate]] = {}
        for incident in incidents:
            updates_by_incident[incident.id] = await self._store.list_incident_updates(
                incident.id
            )

        timeline = build_timeline_entries(incidents, updates_by_incident)
        logger.debug(
            "timeline_built",
            organization_id=organization_id,
            lookback_days=lookback_days,
            incidents=len(incidents),
            entries=len(timeline),
        )
        return timeline
