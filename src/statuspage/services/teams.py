"""Team management service."""

import structlog

from statuspage.core.domain_types import Team, TeamMember
from statuspage.core.exceptions import NotFoundError, ValidationError
from statuspage.core.interfaces import StatusStore
from statuspage.core.rbac import (
    CallerContext,
    TeamRole,
    ensure_same_organization,
    require_org_admin,
    require_organization,
)

logger = structlog.get_logger()


class TeamService:
    """Teams and memberships within one organization."""

    def __init__(self, store: StatusStore):
        self.store = store

    async def list_teams(self, caller: CallerContext) -> list[tuple[Team, list[TeamMember]]]:
        """Teams of the caller's organization with their members."""
        organization_id = require_organization(caller)
        teams = await self.store.list_teams(organization_id)
        result = []
        for team in teams:
            members = await self.store.list_team_members(team.id)
            result.append((team, members))
        return result

    async def get_team(self, caller: CallerContext, team_id: str) -> Team:
        """Get a team of the caller's organization."""
        team = await self.store.get_team(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        ensure_same_organization(caller, team.organization_id)
        return team

    async def create_team(
        self, caller: CallerContext, name: str, description: str | None = None
    ) -> Team:
        """Create a team. Org admins only."""
        require_org_admin(caller)
        if not name or not name.strip():
            raise ValidationError("Team name is required")
        organization_id = require_organization(caller)

        team = await self.store.create_team(organization_id, name.strip(), description)
        logger.info("team_created", team_id=team.id, organization_id=organization_id)
        return team

    async def delete_team(self, caller: CallerContext, team_id: str) -> None:
        """Delete a team. Org admins only."""
        require_org_admin(caller)
        await self.get_team(caller, team_id)
        if not await self.store.delete_team(team_id):
            raise NotFoundError("Team not found")
        logger.info("team_deleted", team_id=team_id)

    async def add_member(
        self,
        caller: CallerContext,
        team_id: str,
        user_id: str,
        role: TeamRole = TeamRole.MEMBER,
    ) -> TeamMember:
        """Add a user of the same organization to a team."""
        require_org_admin(caller)
        team = await self.get_team(caller, team_id)
        user = await self.store.get_user(user_id)
        if user is None or user.organization_id != team.organization_id:
            raise NotFoundError("User not found")

        member = await self.store.add_team_member(team_id, user_id, role)
        logger.info("team_member_added", team_id=team_id, user_id=user_id, role=role.value)
        return member

    async def remove_member(self, caller: CallerContext, team_id: str, user_id: str) -> None:
        """Remove a user from a team."""
        require_org_admin(caller)
        await self.get_team(caller, team_id)
        if not await self.store.remove_team_member(team_id, user_id):
            raise NotFoundError("Team member not found")
        logger.info("team_member_removed", team_id=team_id, user_id=user_id)
