"""Public visibility of incidents.

Active incidents are always shown. Resolved incidents are shown only if
they lasted longer than MIN_PUBLIC_DURATION, which hides incidents that
were opened and closed again almost immediately (usually by mistake).
Only the public listing applies this filter.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from statuspage.core.domain_types import Incident

MIN_PUBLIC_DURATION = timedelta(minutes=5)


def incident_duration(incident: Incident, now: datetime | None = None) -> timedelta:
    """Time from start to resolution, or to ``now`` while unresolved."""
    end = incident.resolved_at or now or datetime.now(UTC)
    return end - incident.started_at


def is_publicly_visible(incident: Incident, now: datetime | None = None) -> bool:
    """Decide whether an incident belongs on the public listing."""
    if incident.is_active:
        return True
    return incident_duration(incident, now) > MIN_PUBLIC_DURATION


def filter_public_incidents(
    incidents: Iterable[Incident], now: datetime | None = None
) -> list[Incident]:
    """Keep the publicly visible incidents, preserving order."""
    now = now or datetime.now(UTC)
    return [incident for incident in incidents if is_publicly_visible(incident, now)]
