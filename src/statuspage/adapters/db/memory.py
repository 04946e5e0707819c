"""In-memory StatusStore for testing and local development.

Holds rows in plain dicts and hydrates domain models on read, the same
way the PostgreSQL adapter joins rows. Useful for:
- Unit testing the services and routes without a database
- Running the API locally with ``STATUSPAGE_STORAGE=memory``
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from statuspage.core.domain_types import (
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
from statuspage.core.exceptions import ConflictError
from statuspage.core.rbac.types import TeamRole, UserRole


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid4())


@dataclass
class _IncidentRow:
    id: str
    organization_id: str
    created_by_id: str
    title: str
    description: str
    status: IncidentStatus
    severity: Severity
    started_at: datetime
    created_at: datetime
    updated_at: datetime
    resolved_at: datetime | None = None
    service_ids: list[str] = field(default_factory=list)


@dataclass
class _UpdateRow:
    id: str
    incident_id: str
    created_by_id: str
    message: str
    status: str
    created_at: datetime


@dataclass
class _MemberRow:
    team_id: str
    user_id: str
    role: TeamRole
    added_at: datetime


class InMemoryStatusStore:
    """StatusStore backed by process memory.

    Attributes:
        clock: Source of timestamps; tests replace it to control time.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        """Initialize an empty store.

        Args:
            clock: Callable returning the current (timezone-aware) time.
        """
        self.clock = clock
        self._organizations: dict[str, Organization] = {}
        self._services: dict[str, Service] = {}
        self._incidents: dict[str, _IncidentRow] = {}
        self._updates: dict[str, _UpdateRow] = {}
        self._users: dict[str, User] = {}
        self._teams: dict[str, Team] = {}
        self._members: list[_MemberRow] = []

    # Organizations

    async def create_organization(
        self, name: str, slug: str, description: str | None = None
    ) -> Organization:
        """Create an organization."""
        if any(org.slug == slug for org in self._organizations.values()):
            raise ConflictError(f"Organization slug '{slug}' already exists")
        org = Organization(
            id=_new_id(), slug=slug, name=name, description=description, created_at=self.clock()
        )
        self._organizations[org.id] = org
        return org

    async def get_organization(self, organization_id: str) -> Organization | None:
        """Get organization by id."""
        return self._organizations.get(organization_id)

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        return next((o for o in self._organizations.values() if o.slug == slug), None)

    async def list_organizations(self) -> list[Organization]:
        """List all organizations, newest first."""
        return sorted(self._organizations.values(), key=lambda o: o.created_at, reverse=True)

    async def update_organization(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
    ) -> Organization | None:
        """Update an organization."""
        org = self._organizations.get(organization_id)
        if org is None:
            return None
        if slug is not None and any(
            o.slug == slug and o.id != organization_id for o in self._organizations.values()
        ):
            raise ConflictError(f"Organization slug '{slug}' already exists")
        changes = {"name": name, "slug": slug, "description": description}
        org = org.model_copy(update={k: v for k, v in changes.items() if v is not None})
        self._organizations[organization_id] = org
        return org

    async def delete_organization(self, organization_id: str) -> bool:
        """Delete an organization with everything it owns."""
        if self._organizations.pop(organization_id, None) is None:
            return False
        for incident_id in [
            i.id for i in self._incidents.values() if i.organization_id == organization_id
        ]:
            await self.delete_incident(incident_id)
        for service_id in [
            s.id for s in self._services.values() if s.organization_id == organization_id
        ]:
            await self.delete_service(service_id)
        for team_id in [t.id for t in self._teams.values() if t.organization_id == organization_id]:
            await self.delete_team(team_id)
        for user_id in [u.id for u in self._users.values() if u.organization_id == organization_id]:
            await self.delete_user(user_id)
        return True

    # Services

    async def list_services(self, organization_id: str) -> list[Service]:
        """List services of an organization, oldest first."""
        services = [s for s in self._services.values() if s.organization_id == organization_id]
        return sorted(services, key=lambda s: s.created_at)

    async def find_service_by_id(self, service_id: str) -> Service | None:
        """Get service by id."""
        return self._services.get(service_id)

    def _check_service_name(self, organization_id: str, name: str, exclude_id: str | None) -> None:
        for service in self._services.values():
            if (
                service.organization_id == organization_id
                and service.name == name
                and service.id != exclude_id
            ):
                raise ConflictError(f"Service '{name}' already exists in this organization")

    async def create_service(
        self,
        organization_id: str,
        name: str,
        description: str,
        status: ServiceStatus,
    ) -> Service:
        """Create a service."""
        self._check_service_name(organization_id, name, None)
        now = self.clock()
        service = Service(
            id=_new_id(),
            organization_id=organization_id,
            name=name,
            description=description,
            status=status,
            created_at=now,
            updated_at=now,
        )
        self._services[service.id] = service
        return service

    async def update_service(
        self,
        service_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        status: ServiceStatus | None = None,
    ) -> Service | None:
        """Update a service."""
        service = self._services.get(service_id)
        if service is None:
            return None
        if name is not None:
            self._check_service_name(service.organization_id, name, service_id)
        changes = {"name": name, "description": description, "status": status}
        update = {k: v for k, v in changes.items() if v is not None}
        update["updated_at"] = self.clock()
        service = service.model_copy(update=update)
        self._services[service_id] = service
        return service

    async def update_service_status(
        self, service_id: str, status: ServiceStatus
    ) -> Service | None:
        """Overwrite a service's status."""
        return await self.update_service(service_id, status=status)

    async def delete_service(self, service_id: str) -> bool:
        """Delete a service and its incident references."""
        if self._services.pop(service_id, None) is None:
            return False
        for row in self._incidents.values():
            if service_id in row.service_ids:
                row.service_ids = [sid for sid in row.service_ids if sid != service_id]
        return True

    # Incidents

    def _hydrate_incident(self, row: _IncidentRow) -> Incident:
        creator = self._users.get(row.created_by_id)
        return Incident(
            id=row.id,
            organization_id=row.organization_id,
            title=row.title,
            description=row.description,
            status=row.status,
            severity=row.severity,
            started_at=row.started_at,
            resolved_at=row.resolved_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
            created_by=creator.summary() if creator else None,
            affected_services=[
                self._services[sid] for sid in row.service_ids if sid in self._services
            ],
        )

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
        """Create an incident."""
        now = self.clock()
        row = _IncidentRow(
            id=_new_id(),
            organization_id=organization_id,
            created_by_id=created_by_id,
            title=title,
            description=description,
            status=status,
            severity=severity,
            started_at=now,
            created_at=now,
            updated_at=now,
            resolved_at=now if status == IncidentStatus.RESOLVED else None,
            service_ids=list(dict.fromkeys(service_ids)),
        )
        self._incidents[row.id] = row
        return self._hydrate_incident(row)

    async def find_incident_by_id(self, incident_id: str) -> Incident | None:
        """Get incident by id."""
        row = self._incidents.get(incident_id)
        return self._hydrate_incident(row) if row else None

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
        """Update an incident. ``resolved_at`` is only written while still unset."""
        row = self._incidents.get(incident_id)
        if row is None:
            return None
        if title is not None:
            row.title = title
        if description is not None:
            row.description = description
        if status is not None:
            row.status = status
        if severity is not None:
            row.severity = severity
        if resolved_at is not None and row.resolved_at is None:
            row.resolved_at = resolved_at
        if service_ids is not None:
            row.service_ids = list(dict.fromkeys(service_ids))
        row.updated_at = self.clock()
        return self._hydrate_incident(row)

    async def delete_incident(self, incident_id: str) -> bool:
        """Delete an incident with its updates."""
        if self._incidents.pop(incident_id, None) is None:
            return False
        for update_id in [u.id for u in self._updates.values() if u.incident_id == incident_id]:
            del self._updates[update_id]
        return True

    async def find_incidents_by_organization(
        self, organization_id: str, *, created_since: datetime | None = None
    ) -> list[Incident]:
        """List incidents of an organization, most recently started first."""
        rows = [
            row
            for row in self._incidents.values()
            if row.organization_id == organization_id
            and (created_since is None or row.created_at >= created_since)
        ]
        rows.sort(key=lambda row: row.started_at, reverse=True)
        return [self._hydrate_incident(row) for row in rows]

    async def find_active_incidents_affecting_service(
        self, service_id: str, *, exclude_incident_id: str | None = None
    ) -> list[Incident]:
        """List Active incidents that reference a service."""
        return [
            self._hydrate_incident(row)
            for row in self._incidents.values()
            if row.status == IncidentStatus.ACTIVE
            and service_id in row.service_ids
            and row.id != exclude_incident_id
        ]

    # Incident updates

    def _hydrate_update(self, row: _UpdateRow) -> IncidentUpdate:
        author = self._users.get(row.created_by_id)
        return IncidentUpdate(
            id=row.id,
            incident_id=row.incident_id,
            message=row.message,
            status=row.status,
            created_at=row.created_at,
            created_by=author.summary() if author else None,
        )

    async def create_incident_update(
        self, incident_id: str, created_by_id: str, message: str, status: str
    ) -> IncidentUpdate:
        """Append an update to an incident."""
        row = _UpdateRow(
            id=_new_id(),
            incident_id=incident_id,
            created_by_id=created_by_id,
            message=message,
            status=status,
            created_at=self.clock(),
        )
        self._updates[row.id] = row
        return self._hydrate_update(row)

    async def find_incident_update_by_id(self, update_id: str) -> IncidentUpdate | None:
        """Get incident update by id."""
        row = self._updates.get(update_id)
        return self._hydrate_update(row) if row else None

    async def list_incident_updates(self, incident_id: str) -> list[IncidentUpdate]:
        """List updates of an incident, newest first."""
        rows = [row for row in self._updates.values() if row.incident_id == incident_id]
        rows.sort(key=lambda row: row.created_at, reverse=True)
        return [self._hydrate_update(row) for row in rows]

    async def delete_incident_update(self, update_id: str) -> bool:
        """Delete an incident update."""
        return self._updates.pop(update_id, None) is not None

    # Users

    async def get_user(self, user_id: str) -> User | None:
        """Get user by id."""
        return self._users.get(user_id)

    async def list_users(self, organization_id: str | None) -> list[User]:
        """List non-super-admin users, newest first."""
        users = [
            u
            for u in self._users.values()
            if u.role != UserRole.SUPER_ADMIN
            and (organization_id is None or u.organization_id == organization_id)
        ]
        return sorted(users, key=lambda u: u.created_at, reverse=True)

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
        """Create a user."""
        if any(u.email == email for u in self._users.values()):
            raise ConflictError("Email already exists")
        user = User(
            id=_new_id(),
            email=email,
            name=name,
            organization_id=organization_id,
            role=role,
            can_manage_services=can_manage_services,
            can_manage_incidents=can_manage_incidents,
            can_manage_users=can_manage_users,
            is_org_admin=is_org_admin,
            created_at=self.clock(),
        )
        self._users[user.id] = user
        return user

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
        user = self._users.get(user_id)
        if user is None:
            return None
        changes = {
            "role": role,
            "can_manage_services": can_manage_services,
            "can_manage_incidents": can_manage_incidents,
            "can_manage_users": can_manage_users,
        }
        user = user.model_copy(update={k: v for k, v in changes.items() if v is not None})
        self._users[user_id] = user
        return user

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and their team memberships."""
        if self._users.pop(user_id, None) is None:
            return False
        self._members = [m for m in self._members if m.user_id != user_id]
        return True

    # Teams

    async def list_teams(self, organization_id: str) -> list[Team]:
        """List teams of an organization, newest first."""
        teams = [t for t in self._teams.values() if t.organization_id == organization_id]
        return sorted(teams, key=lambda t: t.created_at, reverse=True)

    async def get_team(self, team_id: str) -> Team | None:
        """Get team by id."""
        return self._teams.get(team_id)

    async def create_team(
        self, organization_id: str, name: str, description: str | None = None
    ) -> Team:
        """Create a team."""
        team = Team(
            id=_new_id(),
            organization_id=organization_id,
            name=name,
            description=description,
            created_at=self.clock(),
        )
        self._teams[team.id] = team
        return team

    async def delete_team(self, team_id: str) -> bool:
        """Delete a team and its memberships."""
        if self._teams.pop(team_id, None) is None:
            return False
        self._members = [m for m in self._members if m.team_id != team_id]
        return True

    def _hydrate_member(self, row: _MemberRow) -> TeamMember:
        user = self._users.get(row.user_id)
        return TeamMember(
            team_id=row.team_id,
            user_id=row.user_id,
            role=row.role,
            added_at=row.added_at,
            user=user.summary() if user else None,
        )

    async def add_team_member(self, team_id: str, user_id: str, role: TeamRole) -> TeamMember:
        """Add a user to a team."""
        if any(m.team_id == team_id and m.user_id == user_id for m in self._members):
            raise ConflictError("User is already a member of this team")
        row = _MemberRow(team_id=team_id, user_id=user_id, role=role, added_at=self.clock())
        self._members.append(row)
        return self._hydrate_member(row)

    async def remove_team_member(self, team_id: str, user_id: str) -> bool:
        """Remove a user from a team."""
        before = len(self._members)
        self._members = [
            m for m in self._members if not (m.team_id == team_id and m.user_id == user_id)
        ]
        return len(self._members) < before

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        """List members of a team."""
        return [self._hydrate_member(m) for m in self._members if m.team_id == team_id]

    async def get_counts(self) -> dict[str, int]:
        """Return totals of services, incidents and users."""
        return {
            "services": len(self._services),
            "incidents": len(self._incidents),
            "users": len(self._users),
        }
