"""Domain types - Immutable Pydantic models defining core domain objects.

This module contains the data structures shared by the reconciler, the
visibility filter, the timeline builder and the storage adapters. All
models are frozen; changes go through the store and come back as new
instances.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from statuspage.core.rbac.types import Permission, TeamRole, UserRole


class ServiceStatus(str, Enum):
    """Displayed operational status of a service, in severity order."""

    OPERATIONAL = "Operational"
    DEGRADED_PERFORMANCE = "Degraded Performance"
    PARTIAL_OUTAGE = "Partial Outage"
    MAJOR_OUTAGE = "Major Outage"


class IncidentStatus(str, Enum):
    """Lifecycle state of an incident."""

    ACTIVE = "Active"
    RESOLVED = "Resolved"


class Severity(str, Enum):
    """Incident severity."""

    MINOR = "minor"
    MEDIUM = "medium"
    MAJOR = "major"

    @property
    def service_status(self) -> ServiceStatus:
        """Service status an active incident of this severity imposes."""
        return _SEVERITY_TO_STATUS[self]


_SEVERITY_TO_STATUS = {
    Severity.MINOR: ServiceStatus.DEGRADED_PERFORMANCE,
    Severity.MEDIUM: ServiceStatus.PARTIAL_OUTAGE,
    Severity.MAJOR: ServiceStatus.MAJOR_OUTAGE,
}


class Organization(BaseModel):
    """Tenant boundary."""

    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    name: str
    description: str | None = None
    created_at: datetime


class Service(BaseModel):
    """A component whose health is shown on the status page.

    ``status`` is a cached value maintained by the reconciler.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    organization_id: str
    name: str
    description: str
    status: ServiceStatus = ServiceStatus.OPERATIONAL
    created_at: datetime
    updated_at: datetime | None = None


class UserSummary(BaseModel):
    """Reference to a user embedded in other entities."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class Incident(BaseModel):
    """An incident and the services it affects.

    Attributes:
        started_at: Set at creation, never changes.
        resolved_at: Set once when the incident becomes Resolved.
        affected_services: Services currently referenced through the
            incident/service join. References to deleted services are
            dropped when the incident is loaded.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    organization_id: str
    title: str
    description: str
    status: IncidentStatus = IncidentStatus.ACTIVE
    severity: Severity = Severity.MEDIUM
    started_at: datetime
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    created_by: UserSummary | None = None
    affected_services: list[Service] = []

    @property
    def is_active(self) -> bool:
        """Whether the incident is still ongoing."""
        return self.status == IncidentStatus.ACTIVE

    @property
    def affected_service_ids(self) -> list[str]:
        """Ids of the affected services, in join order."""
        return [service.id for service in self.affected_services]


class IncidentUpdate(BaseModel):
    """Append-only progress note on an incident.

    ``status`` is a free-text label (e.g. "Investigating") and is not
    related to ``Incident.status``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    incident_id: str
    message: str
    status: str
    created_at: datetime
    created_by: UserSummary | None = None


class User(BaseModel):
    """A platform user.

    ``organization_id`` is None only for super admins.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    organization_id: str | None = None
    role: UserRole = UserRole.USER
    can_manage_services: bool = False
    can_manage_incidents: bool = False
    can_manage_users: bool = False
    is_org_admin: bool = False
    created_at: datetime

    @property
    def permissions(self) -> frozenset[Permission]:
        """Capability flags as a set."""
        flags = {
            Permission.MANAGE_SERVICES: self.can_manage_services,
            Permission.MANAGE_INCIDENTS: self.can_manage_incidents,
            Permission.MANAGE_USERS: self.can_manage_users,
        }
        return frozenset(permission for permission, enabled in flags.items() if enabled)

    def summary(self) -> UserSummary:
        """Reference form used inside incidents and updates."""
        return UserSummary(id=self.id, name=self.name, email=self.email)


class Team(BaseModel):
    """A team in an organization."""

    model_config = ConfigDict(frozen=True)

    id: str
    organization_id: str
    name: str
    description: str | None = None
    created_at: datetime


class TeamMember(BaseModel):
    """A user's membership in a team."""

    model_config = ConfigDict(frozen=True)

    team_id: str
    user_id: str
    role: TeamRole = TeamRole.MEMBER
    added_at: datetime
    user: UserSummary | None = None
