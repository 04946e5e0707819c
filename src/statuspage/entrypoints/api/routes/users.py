"""User management routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, EmailStr, Field

from statuspage.core.domain_types import Organization, User
from statuspage.core.rbac import UserRole
from statuspage.entrypoints.api.deps import get_user_service
from statuspage.entrypoints.api.middleware.auth import CallerDep
from statuspage.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])

UserServiceDep = Annotated[UserService, Depends(get_user_service)]


class PermissionsResponse(BaseModel):
    """Capability flags of a user."""

    can_manage_services: bool
    can_manage_incidents: bool
    can_manage_users: bool
    is_org_admin: bool


class UserResponse(BaseModel):
    """Response for a user."""

    id: str
    email: str
    name: str
    role: UserRole
    organization_id: str | None = None
    permissions: PermissionsResponse
    created_at: datetime


class MeResponse(UserResponse):
    """The caller's profile with their organization."""

    organization: Organization | None = None


class CreateUserRequest(BaseModel):
    """Request to create a user."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.USER
    can_manage_services: bool = False
    can_manage_incidents: bool = False
    can_manage_users: bool = False
    is_org_admin: bool = False
    organization_id: str | None = None


class UpdateUserRequest(BaseModel):
    """Request to update a user's role and permissions."""

    role: UserRole | None = None
    can_manage_services: bool | None = None
    can_manage_incidents: bool | None = None
    can_manage_users: bool | None = None


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        organization_id=user.organization_id,
        permissions=PermissionsResponse(
            can_manage_services=user.can_manage_services,
            can_manage_incidents=user.can_manage_incidents,
            can_manage_users=user.can_manage_users,
            is_org_admin=user.is_org_admin,
        ),
        created_at=user.created_at,
    )


@router.get("/me", response_model=MeResponse)
async def get_current_user(caller: CallerDep, users: UserServiceDep) -> MeResponse:
    """Get the current authenticated user's profile."""
    user, organization = await users.me(caller)
    return MeResponse(**_to_response(user).model_dump(), organization=organization)


@router.get("", response_model=list[UserResponse])
async def list_users(caller: CallerDep, users: UserServiceDep) -> list[UserResponse]:
    """List users of the caller's organization.

    Requires admin.
    """
    return [_to_response(user) for user in await users.list_users(caller)]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, caller: CallerDep, users: UserServiceDep) -> UserResponse:
    """Get a user by ID.

    Requires admin.
    """
    return _to_response(await users.get_user(caller, user_id))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    caller: CallerDep,
    users: UserServiceDep,
) -> UserResponse:
    """Create a user in the admin's organization.

    Requires admin.
    """
    user = await users.create_user(
        caller,
        email=body.email,
        name=body.name,
        role=body.role,
        can_manage_services=body.can_manage_services,
        can_manage_incidents=body.can_manage_incidents,
        can_manage_users=body.can_manage_users,
        is_org_admin=body.is_org_admin,
        organization_id=body.organization_id,
    )
    return _to_response(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    caller: CallerDep,
    users: UserServiceDep,
) -> UserResponse:
    """Update a user's role and permissions.

    Requires admin.
    """
    user = await users.update_permissions(
        caller,
        user_id,
        role=body.role,
        can_manage_services=body.can_manage_services,
        can_manage_incidents=body.can_manage_incidents,
        can_manage_users=body.can_manage_users,
    )
    return _to_response(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_user(user_id: str, caller: CallerDep, users: UserServiceDep) -> Response:
    """Delete a user. Admins cannot delete themselves.

    Requires admin.
    """
    await users.delete_user(caller, user_id)
    return Response(status_code=204)
