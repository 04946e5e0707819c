"""Application database adapter using asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from importlib import resources
from typing import Any

import asyncpg
import structlog

from statuspage.adapters.rbac import TeamsRepository
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
    UserSummary,
)
from statuspage.core.exceptions import ConflictError, NotFoundError, TransientStorageError
from statuspage.core.rbac import TeamRole, UserRole

logger = structlog.get_logger()

_TRANSIENT_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
    asyncpg.TooManyConnectionsError,
    asyncpg.ConnectionDoesNotExistError,
    OSError,
)

_CONFLICT_MESSAGES = {
    "organizations_slug_key": "Organization slug already exists",
    "services_organization_id_name_key": "Service name already exists in this organization",
    "users_email_key": "Email already exists",
}

_INCIDENT_SELECT = """
    SELECT i.id, i.organization_id, i.title, i.description, i.status, i.severity,
           i.started_at, i.resolved_at, i.created_at, i.updated_at,
           i.created_by_id, u.name AS creator_name, u.email AS creator_email
    FROM incidents i
    LEFT JOIN users u ON u.id = i.created_by_id
"""

_UPDATE_SELECT = """
    SELECT iu.id, iu.incident_id, iu.message, iu.status, iu.created_at,
           iu.created_by_id, u.name AS creator_name, u.email AS creator_email
    FROM {source} iu
    LEFT JOIN users u ON u.id = iu.created_by_id
"""


def _aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _row_to_organization(row: dict[str, Any]) -> Organization:
    return Organization(
        id=row["id"],
        slug=row["slug"],
        name=row["name"],
        description=row["description"],
        created_at=_aware(row["created_at"]),
    )


def _row_to_service(row: dict[str, Any]) -> Service:
    return Service(
        id=row["id"],
        organization_id=row["organization_id"],
        name=row["name"],
        description=row["description"],
        status=ServiceStatus(row["status"]),
        created_at=_aware(row["created_at"]),
        updated_at=_aware(row["updated_at"]),
    )


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        organization_id=row["organization_id"],
        role=UserRole(row["role"]),
        can_manage_services=row["can_manage_services"],
        can_manage_incidents=row["can_manage_incidents"],
        can_manage_users=row["can_manage_users"],
        is_org_admin=row["is_org_admin"],
        created_at=_aware(row["created_at"]),
    )


def _creator(row: dict[str, Any]) -> UserSummary | None:
    if row["created_by_id"] is None or row["creator_name"] is None:
        return None
    return UserSummary(
        id=row["created_by_id"], name=row["creator_name"], email=row["creator_email"]
    )


def _row_to_update(row: dict[str, Any]) -> IncidentUpdate:
    return IncidentUpdate(
        id=row["id"],
        incident_id=row["incident_id"],
        message=row["message"],
        status=row["status"],
        created_at=_aware(row["created_at"]),
        created_by=_creator(row),
    )


class AppDatabase:
    """Application database for organizations, services, incidents, users and teams.

    Implements the StatusStore protocol. Backend failures are translated
    into the domain error taxonomy inside ``acquire``.
    """

    def __init__(self, dsn: str):
        """Initialize the app database adapter."""
        self.dsn = dsn
        self.pool: asyncpg.Pool[asyncpg.Connection[asyncpg.Record]] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=2,
            max_size=10,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("app_database_disconnected")

    async def apply_schema(self) -> None:
        """Create tables that do not exist yet."""
        sql = resources.files("statuspage.adapters.db").joinpath("schema.sql").read_text()
        await self.execute(sql)
        logger.info("app_database_schema_applied")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        try:
            async with self.pool.acquire() as conn:
                yield conn
        except asyncpg.UniqueViolationError as e:
            message = _CONFLICT_MESSAGES.get(e.constraint_name or "", "Entity already exists")
            raise ConflictError(message) from e
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError("Referenced entity does not exist") from e
        except _TRANSIENT_ERRORS as e:
            logger.error("app_database_unavailable", error=str(e))
            raise TransientStorageError("Storage unavailable") from e

    async def fetch_one(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Fetch a single row."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, *args: Any) -> list[dict[str, Any]]:
        """Fetch all rows."""
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query and return status."""
        async with self.acquire() as conn:
            result: str = await conn.execute(query, *args)
            return result

    async def execute_returning(self, query: str, *args: Any) -> dict[str, Any] | None:
        """Execute a query with RETURNING clause."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            if row:
                return dict(row)
            return None

    # Organization operations

    async def create_organization(
        self, name: str, slug: str, description: str | None = None
    ) -> Organization:
        """Create a new organization."""
        result = await self.execute_returning(
            """INSERT INTO organizations (name, slug, description)
               VALUES ($1, $2, $3)
               RETURNING *""",
            name,
            slug,
            description,
        )
        if result is None:
            raise RuntimeError("Failed to create organization")
        return _row_to_organization(result)

    async def get_organization(self, organization_id: str) -> Organization | None:
        """Get organization by ID."""
        row = await self.fetch_one("SELECT * FROM organizations WHERE id = $1", organization_id)
        return _row_to_organization(row) if row else None

    async def get_organization_by_slug(self, slug: str) -> Organization | None:
        """Get organization by slug."""
        row = await self.fetch_one("SELECT * FROM organizations WHERE slug = $1", slug)
        return _row_to_organization(row) if row else None

    async def list_organizations(self) -> list[Organization]:
        """List all organizations, newest first."""
        rows = await self.fetch_all("SELECT * FROM organizations ORDER BY created_at DESC")
        return [_row_to_organization(row) for row in rows]

    async def update_organization(
        self,
        organization_id: str,
        *,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
    ) -> Organization | None:
        """Update an organization; None leaves a field unchanged."""
        row = await self.execute_returning(
            """UPDATE organizations
               SET name = COALESCE($2, name),
                   slug = COALESCE($3, slug),
                   description = COALESCE($4, description)
               WHERE id = $1
               RETURNING *""",
            organization_id,
            name,
            slug,
            description,
        )
        return _row_to_organization(row) if row else None

    async def delete_organization(self, organization_id: str) -> bool:
        """Delete an organization; owned rows cascade."""
        result = await self.execute("DELETE FROM organizations WHERE id = $1", organization_id)
        return result == "DELETE 1"

    # Service operations

    async def list_services(self, organization_id: str) -> list[Service]:
        """List services of an organization, oldest first."""
        rows = await self.fetch_all(
            "SELECT * FROM services WHERE organization_id = $1 ORDER BY created_at ASC",
            organization_id,
        )
        return [_row_to_service(row) for row in rows]

    async def find_service_by_id(self, service_id: str) -> Service | None:
        """Get service by ID."""
        row = await self.fetch_one("SELECT * FROM services WHERE id = $1", service_id)
        return _row_to_service(row) if row else None

    async def create_service(
        self,
        organization_id: str,
        name: str,
        description: str,
        status: ServiceStatus,
    ) -> Service:
        """Create a new service."""
        row = await self.execute_returning(
            """INSERT INTO services (organization_id, name, description, status)
               VALUES ($1, $2, $3, $4)
               RETURNING *""",
            organization_id,
            name,
            description,
            status.value,
        )
        if row is None:
            raise RuntimeError("Failed to create service")
        return _row_to_service(row)

    async def update_service(
        self,
        service_id: str,
        *,
        name: str | None = None,
        description: str | None = None,
        status: ServiceStatus | None = None,
    ) -> Service | None:
        """Update a service; None leaves a field unchanged."""
        row = await self.execute_returning(
            """UPDATE services
               SET name = COALESCE($2, name),
                   description = COALESCE($3, description),
                   status = COALESCE($4, status),
                   updated_at = NOW()
               WHERE id = $1
               RETURNING *""",
            service_id,
            name,
            description,
            status.value if status else None,
        )
        return _row_to_service(row) if row else None

    async def update_service_status(
        self, service_id: str, status: ServiceStatus
    ) -> Service | None:
        """Overwrite a service's status."""
        row = await self.execute_returning(
            """UPDATE services SET status = $2, updated_at = NOW()
               WHERE id = $1
               RETURNING *""",
            service_id,
            status.value,
        )
        return _row_to_service(row) if row else None

    async def delete_service(self, service_id: str) -> bool:
        """Delete a service; incident references cascade."""
        result = await self.execute("DELETE FROM services WHERE id = $1", service_id)
        return result == "DELETE 1"

    # Incident operations

    async def _hydrate_incidents(
        self, conn: asyncpg.Connection[asyncpg.Record], rows: list[Any]
    ) -> list[Incident]:
        """Attach creators and affected services to incident rows."""
        if not rows:
            return []
        service_rows = await conn.fetch(
            """SELECT isv.incident_id, s.*
               FROM incident_services isv
               JOIN services s ON s.id = isv.service_id
               WHERE isv.incident_id = ANY($1::text[])
               ORDER BY isv.position""",
            [row["id"] for row in rows],
        )
        services_by_incident: dict[str, list[Service]] = {}
        for service_row in service_rows:
            services_by_incident.setdefault(service_row["incident_id"], []).append(
                _row_to_service(dict(service_row))
            )

        return [
            Incident(
                id=row["id"],
                organization_id=row["organization_id"],
                title=row["title"],
                description=row["description"],
                status=IncidentStatus(row["status"]),
                severity=Severity(row["severity"]),
                started_at=_aware(row["started_at"]),
                resolved_at=_aware(row["resolved_at"]),
                created_at=_aware(row["created_at"]),
                updated_at=_aware(row["updated_at"]),
                created_by=_creator(dict(row)),
                affected_services=services_by_incident.get(row["id"], []),
            )
            for row in rows
        ]

    async def _replace_incident_services(
        self,
        conn: asyncpg.Connection[asyncpg.Record],
        incident_id: str,
        service_ids: list[str],
    ) -> None:
        await conn.execute("DELETE FROM incident_services WHERE incident_id = $1", incident_id)
        await conn.executemany(
            """INSERT INTO incident_services (incident_id, service_id, position)
               VALUES ($1, $2, $3)""",
            [
                (incident_id, service_id, position)
                for position, service_id in enumerate(dict.fromkeys(service_ids))
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
        """Create an incident and its affected-service references."""
        async with self.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """INSERT INTO incidents
                       (organization_id, created_by_id, title, description, status, severity,
                        resolved_at)
                       VALUES ($1, $2, $3, $4, $5, $6,
                               CASE WHEN $5 = 'Resolved' THEN NOW() END)
                       RETURNING id""",
                    organization_id,
                    created_by_id,
                    title,
                    description,
                    status.value,
                    severity.value,
                )
                await self._replace_incident_services(conn, row["id"], service_ids)
            rows = await conn.fetch(f"{_INCIDENT_SELECT} WHERE i.id = $1", row["id"])
            incidents = await self._hydrate_incidents(conn, list(rows))
        return incidents[0]

    async def find_incident_by_id(self, incident_id: str) -> Incident | None:
        """Get incident by ID."""
        async with self.acquire() as conn:
            rows = await conn.fetch(f"{_INCIDENT_SELECT} WHERE i.id = $1", incident_id)
            incidents = await self._hydrate_incidents(conn, list(rows))
        return incidents[0] if incidents else None

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

        ``resolved_at`` is written only while the column is still NULL.
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    """UPDATE incidents
                       SET title = COALESCE($2, title),
                           description = COALESCE($3, description),
                           status = COALESCE($4, status),
                           severity = COALESCE($5, severity),
                           resolved_at = COALESCE(resolved_at, $6),
                           updated_at = NOW()
                       WHERE id = $1
                       RETURNING id""",
                    incident_id,
                    title,
                    description,
                    status.value if status else None,
                    severity.value if severity else None,
                    resolved_at,
                )
                if row is None:
                    return None
                if service_ids is not None:
                    await self._replace_incident_services(conn, incident_id, service_ids)
            rows = await conn.fetch(f"{_INCIDENT_SELECT} WHERE i.id = $1", incident_id)
            incidents = await self._hydrate_incidents(conn, list(rows))
        return incidents[0] if incidents else None

    async def delete_incident(self, incident_id: str) -> bool:
        """Delete an incident; updates and references cascade."""
        result = await self.execute("DELETE FROM incidents WHERE id = $1", incident_id)
        return result == "DELETE 1"

    async def find_incidents_by_organization(
        self, organization_id: str, *, created_since: datetime | None = None
    ) -> list[Incident]:
        """List incidents of an organization, most recently started first."""
        async with self.acquire() as conn:
            rows = await conn.fetch(
                f"""{_INCIDENT_SELECT}
                    WHERE i.organization_id = $1
                      AND ($2::timestamptz IS NULL OR i.created_at >= $2)
                    ORDER BY i.started_at DESC""",
                organization_id,
                created_since,
            )
            return await self._hydrate_incidents(conn, list(rows))

    async def find_active_incidents_affecting_service(
        self, service_id: str, *, exclude_incident_id: str | None = None
    ) -> list[Incident]:
        """List Active incidents that reference a service."""
        async with self.acquire() as conn:
            rows = await conn.fetch(
                f"""{_INCIDENT_SELECT}
                    JOIN incident_services isv ON isv.incident_id = i.id
                    WHERE isv.service_id = $1
                      AND i.status = 'Active'
                      AND ($2::text IS NULL OR i.id <> $2)""",
                service_id,
                exclude_incident_id,
            )
            return await self._hydrate_incidents(conn, list(rows))

    # Incident update operations

    async def create_incident_update(
        self, incident_id: str, created_by_id: str, message: str, status: str
    ) -> IncidentUpdate:
        """Append an update to an incident."""
        row = await self.fetch_one(
            f"""WITH inserted AS (
                    INSERT INTO incident_updates (incident_id, created_by_id, message, status)
                    VALUES ($1, $2, $3, $4)
                    RETURNING *
                )
                {_UPDATE_SELECT.format(source="inserted")}""",
            incident_id,
            created_by_id,
            message,
            status,
        )
        if row is None:
            raise RuntimeError("Failed to create incident update")
        return _row_to_update(row)

    async def find_incident_update_by_id(self, update_id: str) -> IncidentUpdate | None:
        """Get incident update by ID."""
        row = await self.fetch_one(
            f"{_UPDATE_SELECT.format(source='incident_updates')} WHERE iu.id = $1", update_id
        )
        return _row_to_update(row) if row else None

    async def list_incident_updates(self, incident_id: str) -> list[IncidentUpdate]:
        """List updates of an incident, newest first."""
        rows = await self.fetch_all(
            f"""{_UPDATE_SELECT.format(source="incident_updates")}
                WHERE iu.incident_id = $1
                ORDER BY iu.created_at DESC""",
            incident_id,
        )
        return [_row_to_update(row) for row in rows]

    async def delete_incident_update(self, update_id: str) -> bool:
        """Delete an incident update."""
        result = await self.execute("DELETE FROM incident_updates WHERE id = $1", update_id)
        return result == "DELETE 1"

    # User operations

    async def get_user(self, user_id: str) -> User | None:
        """Get user by ID."""
        row = await self.fetch_one("SELECT * FROM users WHERE id = $1", user_id)
        return _row_to_user(row) if row else None

    async def list_users(self, organization_id: str | None) -> list[User]:
        """List non-super-admin users, newest first."""
        rows = await self.fetch_all(
            """SELECT * FROM users
               WHERE role <> 'super_admin'
                 AND ($1::text IS NULL OR organization_id = $1)
               ORDER BY created_at DESC""",
            organization_id,
        )
        return [_row_to_user(row) for row in rows]

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
        """Create a new user."""
        row = await self.execute_returning(
            """INSERT INTO users
               (email, name, organization_id, role, can_manage_services,
                can_manage_incidents, can_manage_users, is_org_admin)
               VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
               RETURNING *""",
            email,
            name,
            organization_id,
            role.value,
            can_manage_services,
            can_manage_incidents,
            can_manage_users,
            is_org_admin,
        )
        if row is None:
            raise RuntimeError("Failed to create user")
        return _row_to_user(row)

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
        row = await self.execute_returning(
            """UPDATE users
               SET role = COALESCE($2, role),
                   can_manage_services = COALESCE($3, can_manage_services),
                   can_manage_incidents = COALESCE($4, can_manage_incidents),
                   can_manage_users = COALESCE($5, can_manage_users)
               WHERE id = $1
               RETURNING *""",
            user_id,
            role.value if role else None,
            can_manage_services,
            can_manage_incidents,
            can_manage_users,
        )
        return _row_to_user(row) if row else None

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user."""
        result = await self.execute("DELETE FROM users WHERE id = $1", user_id)
        return result == "DELETE 1"

    # Team operations

    async def list_teams(self, organization_id: str) -> list[Team]:
        """List teams of an organization."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).list_by_org(organization_id)

    async def get_team(self, team_id: str) -> Team | None:
        """Get team by ID."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).get_by_id(team_id)

    async def create_team(
        self, organization_id: str, name: str, description: str | None = None
    ) -> Team:
        """Create a team."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).create(organization_id, name, description)

    async def delete_team(self, team_id: str) -> bool:
        """Delete a team."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).delete(team_id)

    async def add_team_member(self, team_id: str, user_id: str, role: TeamRole) -> TeamMember:
        """Add a user to a team."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).add_member(team_id, user_id, role)

    async def remove_team_member(self, team_id: str, user_id: str) -> bool:
        """Remove a user from a team."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).remove_member(team_id, user_id)

    async def list_team_members(self, team_id: str) -> list[TeamMember]:
        """List members of a team."""
        async with self.acquire() as conn:
            return await TeamsRepository(conn).get_members(team_id)

    async def get_counts(self) -> dict[str, int]:
        """Return totals of services, incidents and users."""
        row = await self.fetch_one(
            """SELECT (SELECT COUNT(*) FROM services) AS services,
                      (SELECT COUNT(*) FROM incidents) AS incidents,
                      (SELECT COUNT(*) FROM users) AS users"""
        )
        if row is None:
            return {"services": 0, "incidents": 0, "users": 0}
        return {key: int(value) for key, value in row.items()}
