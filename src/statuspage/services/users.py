"""User management service."""

import structlog

from statuspage.core.domain_types import Organization, User
from statuspage.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from statuspage.core.interfaces import StatusStore
from statuspage.core.rbac import (
    CallerContext,
    UserRole,
    ensure_same_organization,
    require_admin,
    require_organization,
)

logger = structlog.get_logger()


class UserService:
    """Admin-facing user CRUD, scoped to the caller's organization."""

    def __init__(self, store: StatusStore):
        self.store = store

    async def me(self, caller: CallerContext) -> tuple[User, Organization | None]:
        """The caller's own profile and organization."""
        user = await self.store.get_user(caller.user_id)
        if user is None:
            raise NotFoundError("User not found")
        org = None
        if user.organization_id:
            org = await self.store.get_organization(user.organization_id)
        return user, org

    async def list_users(self, caller: CallerContext) -> list[User]:
        """List users. Super admins see every organization."""
        require_admin(caller)
        if caller.is_super_admin:
            return await self.store.list_users(None)
        return await self.store.list_users(require_organization(caller))

    async def get_user(self, caller: CallerContext, user_id: str) -> User:
        """Get a user in the caller's organization."""
        require_admin(caller)
        user = await self.store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        if user.organization_id:
            ensure_same_organization(caller, user.organization_id)
        return user

    async def create_user(
        self,
        caller: CallerContext,
        email: str,
        name: str,
        role: UserRole = UserRole.USER,
        can_manage_services: bool = False,
        can_manage_incidents: bool = False,
        can_manage_users: bool = False,
        is_org_admin: bool = False,
        organization_id: str | None = None,
    ) -> User:
        """Create a user in the admin's organization.

        Only super admins may pick another organization or grant the
        super_admin role.
        """
        require_admin(caller)
        if not email or not email.strip() or not name or not name.strip():
            raise ValidationError("Email and name are required")
        self._check_role_grant(caller, role)

        if caller.is_super_admin and organization_id:
            target_org = organization_id
            if await self.store.get_organization(target_org) is None:
                raise NotFoundError("Organization not found")
        else:
            target_org = require_organization(caller)

        user = await self.store.create_user(
            email=email.strip().lower(),
            name=name.strip(),
            organization_id=target_org,
            role=role,
            can_manage_services=can_manage_services,
            can_manage_incidents=can_manage_incidents,
            can_manage_users=can_manage_users,
            is_org_admin=is_org_admin,
        )
        logger.info("user_created", user_id=user.id, organization_id=target_org, role=role.value)
        return user

    async def update_permissions(
        self,
        caller: CallerContext,
        user_id: str,
        role: UserRole | None = None,
        can_manage_services: bool | None = None,
        can_manage_incidents: bool | None = None,
        can_manage_users: bool | None = None,
    ) -> User:
        """Change a user's role and capability flags."""
        await self.get_user(caller, user_id)
        if role is not None:
            self._check_role_grant(caller, role)

        user = await self.store.update_user_permissions(
            user_id,
            role=role,
            can_manage_services=can_manage_services,
            can_manage_incidents=can_manage_incidents,
            can_manage_users=can_manage_users,
        )
        if user is None:
            raise NotFoundError("User not found")
        logger.info("user_permissions_updated", user_id=user_id, role=user.role.value)
        return user

    async def delete_user(self, caller: CallerContext, user_id: str) -> None:
        """Delete a user. Admins cannot delete themselves."""
        require_admin(caller)
        if user_id == caller.user_id:
            raise ValidationError("Cannot delete your own account")
        await self.get_user(caller, user_id)

        if not await self.store.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("user_deleted", user_id=user_id)

    def _check_role_grant(self, caller: CallerContext, role: UserRole) -> None:
        if role == UserRole.SUPER_ADMIN and not caller.is_super_admin:
            raise AuthorizationError("Only super admins can grant super admin")
