"""Teams repository."""

import logging
from datetime import UTC
from typing import TYPE_CHECKING, Any

from statuspage.core.domain_types import Team, TeamMember, UserSummary
from statuspage.core.exceptions import ConflictError
from statuspage.core.rbac import TeamRole

if TYPE_CHECKING:
    from asyncpg import Connection

logger = logging.getLogger(__name__)


class TeamsRepository:
    """Repository for team operations."""

    def __init__(self, conn: "Connection") -> None:
        """Initialize the repository."""
        self._conn = conn

    async def create(
        self,
        organization_id: str,
        name: str,
        description: str | None = None,
    ) -> Team:
        """Create a new team."""
        row = await self._conn.fetchrow(
            """
            INSERT INTO teams (organization_id, name, description)
            VALUES ($1, $2, $3)
            RETURNING id, organization_id, name, description, created_at
            """,
            organization_id,
            name,
            description,
        )
        return self._row_to_team(row)

    async def get_by_id(self, team_id: str) -> Team | None:
        """Get team by ID."""
        row = await self._conn.fetchrow(
            """
            SELECT id, organization_id, name, description, created_at
            FROM teams WHERE id = $1
            """,
            team_id,
        )
        if not row:
            return None
        return self._row_to_team(row)

    async def list_by_org(self, organization_id: str) -> list[Team]:
        """List all teams in an organization, newest first."""
        rows = await self._conn.fetch(
            """
            SELECT id, organization_id, name, description, created_at
            FROM teams WHERE organization_id = $1 ORDER BY created_at DESC
            """,
            organization_id,
        )
        return [self._row_to_team(row) for row in rows]

    async def delete(self, team_id: str) -> bool:
        """Delete a team."""
        result: str = await self._conn.execute(
            "DELETE FROM teams WHERE id = $1",
            team_id,
        )
        return result == "DELETE 1"

    async def add_member(self, team_id: str, user_id: str, role: TeamRole) -> TeamMember:
        """Add a user to a team."""
        row = await self._conn.fetchrow(
            """
            WITH inserted AS (
                INSERT INTO team_members (team_id, user_id, role)
                VALUES ($1, $2, $3)
                ON CONFLICT (team_id, user_id) DO NOTHING
                RETURNING team_id, user_id, role, added_at
            )
            SELECT i.team_id, i.user_id, i.role, i.added_at,
                   u.name AS user_name, u.email AS user_email
            FROM inserted i
            LEFT JOIN users u ON u.id = i.user_id
            """,
            team_id,
            user_id,
            role.value,
        )
        if not row:
            logger.info(f"User {user_id} already in team {team_id}")
            raise ConflictError("User is already a member of this team")
        return self._row_to_member(row)

    async def remove_member(self, team_id: str, user_id: str) -> bool:
        """Remove a user from a team."""
        result: str = await self._conn.execute(
            "DELETE FROM team_members WHERE team_id = $1 AND user_id = $2",
            team_id,
            user_id,
        )
        return result == "DELETE 1"

    async def get_members(self, team_id: str) -> list[TeamMember]:
        """Get team members with their user summaries."""
        rows = await self._conn.fetch(
            """
            SELECT tm.team_id, tm.user_id, tm.role, tm.added_at,
                   u.name AS user_name, u.email AS user_email
            FROM team_members tm
            LEFT JOIN users u ON u.id = tm.user_id
            WHERE tm.team_id = $1
            ORDER BY tm.added_at
            """,
            team_id,
        )
        return [self._row_to_member(row) for row in rows]

    def _row_to_team(self, row: dict[str, Any]) -> Team:
        """Convert database row to Team."""
        return Team(
            id=row["id"],
            organization_id=row["organization_id"],
            name=row["name"],
            description=row["description"],
            created_at=row["created_at"].replace(tzinfo=UTC),
        )

    def _row_to_member(self, row: dict[str, Any]) -> TeamMember:
        """Convert database row to TeamMember."""
        user = None
        if row["user_name"] is not None:
            user = UserSummary(id=row["user_id"], name=row["user_name"], email=row["user_email"])
        return TeamMember(
            team_id=row["team_id"],
            user_id=row["user_id"],
            role=TeamRole(row["role"]),
            added_at=row["added_at"].replace(tzinfo=UTC),
            user=user,
        )
