"""Tests for public incident visibility."""

from datetime import UTC, datetime, timedelta

import pytest

from statuspage.core.domain_types import Incident, IncidentStatus
from statuspage.core.visibility import (
    MIN_PUBLIC_DURATION,
    filter_public_incidents,
    incident_duration,
    is_publicly_visible,
)

START = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _incident(
    incident_id: str = "i1",
    status: IncidentStatus = IncidentStatus.ACTIVE,
    lasted: timedelta | None = None,
) -> Incident:
    return Incident(
        id=incident_id,
        organization_id="org-1",
        title="t",
        description="d",
        status=status,
        started_at=START,
        resolved_at=START + lasted if lasted is not None else None,
        created_at=START,
    )


class TestIsPubliclyVisible:
    """Tests for is_publicly_visible."""

    def test_active_always_visible(self) -> None:
        """Active incidents show regardless of age."""
        assert is_publicly_visible(_incident(), now=START)
        assert is_publicly_visible(_incident(), now=START + timedelta(days=400))

    @pytest.mark.parametrize(
        ("lasted", "visible"),
        [
            (timedelta(minutes=1), False),
            (timedelta(minutes=5), False),
            (timedelta(minutes=5, seconds=1), True),
            (timedelta(hours=3), True),
        ],
    )
    def test_resolved_needs_more_than_five_minutes(
        self, lasted: timedelta, visible: bool
    ) -> None:
        """Resolved incidents show only when they lasted longer than the threshold."""
        incident = _incident(status=IncidentStatus.RESOLVED, lasted=lasted)

        assert is_publicly_visible(incident, now=START + timedelta(days=1)) is visible

    def test_resolved_without_timestamp_uses_now(self) -> None:
        """A Resolved incident missing resolved_at is measured up to now."""
        incident = _incident(status=IncidentStatus.RESOLVED)

        assert not is_publicly_visible(incident, now=START + timedelta(minutes=2))
        assert is_publicly_visible(incident, now=START + timedelta(minutes=6))


class TestIncidentDuration:
    """Tests for incident_duration."""

    def test_resolved_duration(self) -> None:
        """Duration ends at resolution."""
        incident = _incident(status=IncidentStatus.RESOLVED, lasted=timedelta(minutes=7))

        assert incident_duration(incident, now=START + timedelta(days=2)) == timedelta(minutes=7)

    def test_threshold(self) -> None:
        """The threshold is five minutes."""
        assert MIN_PUBLIC_DURATION == timedelta(minutes=5)


class TestFilterPublicIncidents:
    """Tests for filter_public_incidents."""

    def test_keeps_order_and_drops_blips(self) -> None:
        """Short resolved incidents are removed, the rest keep their order."""
        incidents = [
            _incident("a"),
            _incident("b", IncidentStatus.RESOLVED, timedelta(minutes=2)),
            _incident("c", IncidentStatus.RESOLVED, timedelta(minutes=30)),
        ]

        result = filter_public_incidents(incidents, now=START + timedelta(hours=1))

        assert [i.id for i in result] == ["a", "c"]
