"""Teams API routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from statuspage.core.domain_types import Team, TeamMember
from statuspage.core.rbac import TeamRole
from statuspage.entrypoints.api.deps import get_team_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.teams import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])

TeamServiceDep = Annotated[TeamService, Depends(get_team_service)]


class TeamCreate(BaseModel):
    """Team creation request."""

    name: str
    description: str | None = None


class TeamMemberAdd(BaseModel):
    """Add member request."""

    user_id: str
    role: TeamRole = TeamRole.MEMBER


class TeamResponse(BaseModel):
    """Team response."""

    id: str
    organization_id: str
    name: str
    description: str | None = None
    created_at: datetime
    members: list[TeamMember] = []


class TeamListResponse(BaseModel):
    """Response for listing teams."""

    teams: list[TeamResponse]
    total: int


def _to_response(team: Team, members: list[TeamMember] | None = None) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        organization_id=team.organization_id,
        name=team.name,
        description=team.description,
        created_at=team.created_at,
        members=members or [],
    )


@router.get("", response_model=TeamListResponse)
async def list_teams(caller: CallerDep, teams: TeamServiceDep) -> TeamListResponse:
    """List all teams in the organization with their members."""
    result = [_to_response(team, members) for team, members in await teams.list_teams(caller)]
    return TeamListResponse(teams=result, total=len(result))


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreate, caller: CallerDep, teams: TeamServiceDep) -> TeamResponse:
    """Create a new team.

    Requires org admin.
    """
    team = await teams.create_team(caller, body.name, body.description)
    return _to_response(team)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_team(team_id: str, caller: CallerDep, teams: TeamServiceDep) -> Response:
    """Delete a team.

    Requires org admin.
    """
    await teams.delete_team(caller, team_id)
    return Response(status_code=204)


@router.post(
    "/{team_id}/members", response_model=TeamMember, status_code=status.HTTP_201_CREATED
)
async def add_team_member(
    team_id: str,
    body: TeamMemberAdd,
    caller: CallerDep,
    teams: TeamServiceDep,
) -> TeamMember:
    """Add a member to a team.

    Requires org admin.
    """
    return await teams.add_member(caller, team_id, body.user_id, body.role)


@router.delete(
    "/{team_id}/members/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_team_member(
    team_id: str,
    user_id: str,
    caller: CallerDep,
    teams: TeamServiceDep,
) -> Response:
    """Remove a member from a team.

    Requires org admin.
    """
    await teams.remove_member(caller, team_id, user_id)
    return Response(status_code=204)
