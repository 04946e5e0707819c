"""Protocol definitions for all external dependencies.

This module defines the interfaces (Protocols) that adapters must implement.
The core domain only depends on these protocols, never on concrete
implementations: the reconciler and the timeline builder receive a
StatusStore handle at construction, and events leave through an
EventPublisher.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .domain_types import (
        Incident,
        IncidentStatus,
        IncidentUpdate,
        Organization,
        Service,
        ServiceStatus,
        Severity,
        Team,
        TeamMember,
        User,
    )
    from .events import StatusEvent
    from .rbac.types import TeamRole, UserRole


@runtime_checkable
class StatusStore(Protocol):
    """Interface for the storage collaborator.

    Implementations must:
    - Return fully hydrated incidents (creator and affected services)
    - Drop affected-service references whose service no longer exists
    - Translate unique violations into ConflictError and connectivity
      failures into TransientStorageError

    Lookups by id return None for unknown ids; they never raise
    NotFoundError themselves.
    """

    # Organizations

    async def create_organization(
        self, name: str, slug: str, description: str | None = None
    ) -> Organization:
        """Create an organization. Raises ConflictError on duplicate slug."""
        ...

    async def get_organization(self, organization_id: str) -> Organization | None:
        """Get organization by id."""
        ...

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        ...

    async def list_organizations(self) -> list[Organization]:
        """List all organizations, newest first."""
        ...

    async def update_organization(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
    ) -> Organization | None:
        """Update the given fields; None leaves a field unchanged."""
        ...

    async def delete_organization(self, organization_id: str) -> bool:
        """Delete an organization and everything it owns."""
        ...

    # Services

    async def list_services(self, organization_id: str) -> list[Service]:
        """List services of an organization, oldest first."""
        ...

    async def find_service_by_id(self, service_id: str) -> Service | None:
        """Get service by id."""
        ...

    async def create_service(
        self,
        organization_id: str,
        name: str,
        description: str,
        status: ServiceStatus,
    ) -> Service:
        """Create a service. Raises ConflictError on duplicate name in the org."""
        ...

    async def update_service(
        self,
        service_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        status: ServiceStatus | None = None,
    ) -> Service | None:
        """Update the given fields of a service."""
        ...

    async def update_service_status(
        self, service_id: str, status: ServiceStatus
    ) -> Service | None:
        """Overwrite a service's status. Returns None if the service is gone."""
        ...

    async def delete_service(self, service_id: str) -> bool:
        """Delete a service and its incident references."""
        ...

    # Incidents

    async def create_incident(
        self,
        organization_id: str,
        created_by_id: str,
        title: str,
        description: str,
        status: IncidentStatus,
        severity: Severity,
        service_ids: list[str],
    ) -> Incident:
        """Create an incident and its affected-service references."""
        ...

    async def find_incident_by_id(self, incident_id: str) -> Incident | None:
        """Get incident by id."""
        ...

    async def update_incident(
        self,
        incident_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: IncidentStatus | None = None,
        severity: Severity | None = None,
        resolved_at: datetime | None = None,
        service_ids: list[str] | None = None,
    ) -> Incident | None:
        """Update an incident.

        ``service_ids`` replaces the affected-service set when given.
        ``resolved_at`` is only written when given.
        """
        ...

    async def delete_incident(self, incident_id: str) -> bool:
        """Delete an incident with its updates and references."""
        ...

    async def find_incidents_by_organization(
        self, organization_id: str, *, created_since: datetime | None = None
    ) -> list[Incident]:
        """List incidents of an organization, most recently started first."""
        ...

    async def find_active_incidents_affecting_service(
        self, service_id: str, *, exclude_incident_id: str | None = None
    ) -> list[Incident]:
        """List Active incidents that reference a service."""
        ...

    # Incident updates

    async def create_incident_update(
        self, incident_id: str, created_by_id: str, message: str, status: str
    ) -> IncidentUpdate:
        """Append an update to an incident."""
        ...

    async def find_incident_update_by_id(self, update_id: str) -> IncidentUpdate | None:
        """Get incident update by id."""
        ...

    async def list_incident_updates(self, incident_id: str) -> list[IncidentUpdate]:
        """List updates of an incident, newest first."""
        ...

    async def delete_incident_update(self, update_id: str) -> bool:
        """Delete an incident update."""
        ...

    # Users

    async def get_user(self, user_id: str) -> User | None:
        """Get user by id."""
        ...

    async def list_users(self, organization_id: str | None) -> list[User]:
        """List non-super-admin users, optionally scoped to one organization."""
        ...

    async def create_user(
        self,
        email: str,
        name: str,
        organization_id: str | None,
        role: UserRole,
        can_manage_services: bool = False,
        can_manage_incidents: bool = False,
        can_manage_users: bool = False,
        is_org_admin: bool = False,
    ) -> User:
        """Create a user. Raises ConflictError on duplicate email."""
        ...

    async def update_user_permissions(
        self,
        user_id: str,
        *,
        role: UserRole | None = None,
        can_manage_services: bool | None = None,
        can_manage_incidents: bool | None = None,
        can_manage_users: bool | None = None,
    ) -> User | None:
        """Update role and capability flags."""
        ...

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user."""
        ...

    # Teams

    async def list_teams(self, organization_id: str) -> list[Team]:
        """List teams of an organization, newest first."""
        ...

    async def get_team(self, team_id: str) -> Team | None:
        """Get team by id."""
        ...

    async def create_team(
        self, organization_id: str, name: str, description: str | None = None
    ) -> Team:
        """Create a team."""
        ...

    async def delete_team(self, team_id: str) -> bool:
        """Delete a team and its memberships."""
        ...

    async def add_team_member(self, team_id: str, user_id: str, role: TeamRole) -> TeamMember:
        """Add a user to a team. Raises ConflictError if already a member."""
        ...

    async def remove_team_member(self, team_id: str, user_id: str) -> bool:
        """Remove a user from a team."""
        ...

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        """List members of a team."""
        ...

    # Misc

    async def get_counts(self) -> dict[str, int]:
        """Return totals of services, incidents and users."""
        ...


@runtime_checkable
class EventPublisher(Protocol):
    """Interface for pushing events to live viewers."""

    async def broadcast(self, event: StatusEvent) -> int:
        """Send an event to every connected viewer.

        Returns:
            Number of viewers the event was delivered to.
        """
        ...


@runtime_checkable
class ViewerConnection(Protocol):
    """Interface for one live viewer session provided by the transport."""

    @property
    def is_open(self) -> bool:
        """Whether the transport reports the connection as open."""
        ...

    async def send_text(self, data: str) -> None:
        """Send one serialized payload."""
        ...
