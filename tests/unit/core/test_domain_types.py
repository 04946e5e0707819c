"""Tests for domain types."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from statuspage.core.domain_types import (
    Incident,
    IncidentStatus,
    Service,
    ServiceStatus,
    Severity,
    User,
)
from statuspage.core.rbac import Permission, UserRole

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _service(service_id: str) -> Service:
    return Service(
        id=service_id,
        organization_id="org-1",
        name=f"svc-{service_id}",
        description="d",
        created_at=NOW,
    )


class TestSeverity:
    """Tests for Severity."""

    @pytest.mark.parametrize(
        ("severity", "status"),
        [
            (Severity.MINOR, ServiceStatus.DEGRADED_PERFORMANCE),
            (Severity.MEDIUM, ServiceStatus.PARTIAL_OUTAGE),
            (Severity.MAJOR, ServiceStatus.MAJOR_OUTAGE),
        ],
    )
    def test_maps_to_service_status(self, severity: Severity, status: ServiceStatus) -> None:
        """Each severity imposes its service status."""
        assert severity.service_status is status

    def test_status_labels(self) -> None:
        """Status values are the labels shown on the page."""
        assert ServiceStatus.MAJOR_OUTAGE.value == "Major Outage"
        assert ServiceStatus("Degraded Performance") is ServiceStatus.DEGRADED_PERFORMANCE


class TestIncident:
    """Tests for Incident."""

    def test_defaults(self) -> None:
        """New incidents are Active, medium, with no services."""
        incident = Incident(
            id="i1",
            organization_id="org-1",
            title="t",
            description="d",
            started_at=NOW,
            created_at=NOW,
        )

        assert incident.is_active
        assert incident.severity is Severity.MEDIUM
        assert incident.affected_service_ids == []

    def test_affected_service_ids_keep_order(self) -> None:
        """Service ids follow the join order."""
        incident = Incident(
            id="i1",
            organization_id="org-1",
            title="t",
            description="d",
            status=IncidentStatus.RESOLVED,
            started_at=NOW,
            resolved_at=NOW,
            created_at=NOW,
            affected_services=[_service("b"), _service("a")],
        )

        assert not incident.is_active
        assert incident.affected_service_ids == ["b", "a"]

    def test_is_frozen(self) -> None:
        """Models cannot be mutated in place."""
        service = _service("a")

        with pytest.raises(PydanticValidationError):
            service.status = ServiceStatus.MAJOR_OUTAGE  # type: ignore[misc]


class TestUser:
    """Tests for User."""

    def test_permissions_from_flags(self) -> None:
        """Enabled flags become permissions."""
        user = User(
            id="u1",
            email="a@b.test",
            name="A",
            organization_id="org-1",
            can_manage_incidents=True,
            created_at=NOW,
        )

        assert user.permissions == frozenset({Permission.MANAGE_INCIDENTS})
        assert user.role is UserRole.USER

    def test_summary(self) -> None:
        """Summary carries id, name and email."""
        user = User(id="u1", email="a@b.test", name="A", created_at=NOW)

        summary = user.summary()

        assert (summary.id, summary.name, summary.email) == ("u1", "A", "a@b.test")
