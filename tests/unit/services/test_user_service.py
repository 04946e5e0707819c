"""Unit tests for UserService."""

from __future__ import annotations

from typing import Any

import pytest

from statuspage.adapters.db.memory import InMemoryStatusStore
from statuspage.core.domain_types import Organization, User
from statuspage.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from statuspage.core.rbac import UserRole
from statuspage.services.users import UserService


@pytest.fixture
def service(store: InMemoryStatusStore) -> UserService:
    """Return a user service."""
    return UserService(store)


class TestMe:
    """Tests for me."""

    async def test_returns_user_and_org(
        self, service: UserService, org: Organization, manager: User, caller_for: Any
    ) -> None:
        """The profile includes the organization."""
        user, organization = await service.me(caller_for(manager))

        assert user.id == manager.id
        assert organization is not None
        assert organization.id == org.id


class TestListUsers:
    """Tests for list_users."""

    async def test_admin_sees_own_org(
        self,
        service: UserService,
        store: InMemoryStatusStore,
        other_org: Organization,
        admin: User,
        manager: User,
        super_admin: User,
        caller_for: Any,
    ) -> None:
        """Admins list their organization, without super admins."""
        await store.create_user("x@globex.test", "X", other_org.id, UserRole.USER)

        users = await service.list_users(caller_for(admin))

        assert {u.id for u in users} == {admin.id, manager.id}

    async def test_super_admin_sees_all_orgs(
        self,
        service: UserService,
        store: InMemoryStatusStore,
        other_org: Organization,
        admin: User,
        super_admin: User,
        caller_for: Any,
    ) -> None:
        """Super admins list users across organizations."""
        outsider = await store.create_user("x@globex.test", "X", other_org.id, UserRole.USER)

        users = await service.list_users(caller_for(super_admin))

        assert {u.id for u in users} == {admin.id, outsider.id}

    async def test_requires_admin(
        self, service: UserService, manager: User, caller_for: Any
    ) -> None:
        """Plain users cannot list users."""
        with pytest.raises(AuthorizationError):
            await service.list_users(caller_for(manager))


class TestCreateUser:
    """Tests for create_user."""

    async def test_joins_admin_org(
        self, service: UserService, org: Organization, admin: User, caller_for: Any
    ) -> None:
        """New users belong to the creating admin's organization."""
        user = await service.create_user(
            caller_for(admin), "New@Acme.test", "Newbie", can_manage_incidents=True
        )

        assert user.organization_id == org.id
        assert user.email == "new@acme.test"
        assert user.can_manage_incidents

    async def test_duplicate_email(
        self, service: UserService, admin: User, manager: User, caller_for: Any
    ) -> None:
        """Emails are unique."""
        with pytest.raises(ConflictError):
            await service.create_user(caller_for(admin), manager.email, "Again")

    async def test_cannot_grant_super_admin(
        self, service: UserService, admin: User, caller_for: Any
    ) -> None:
        """Only super admins grant super admin."""
        with pytest.raises(AuthorizationError):
            await service.create_user(
                caller_for(admin), "boss@acme.test", "Boss", role=UserRole.SUPER_ADMIN
            )

    async def test_super_admin_picks_org(
        self,
        service: UserService,
        other_org: Organization,
        super_admin: User,
        caller_for: Any,
    ) -> None:
        """Super admins can place users in any organization."""
        user = await service.create_user(
            caller_for(super_admin), "a@globex.test", "A", organization_id=other_org.id
        )

        assert user.organization_id == other_org.id

    async def test_requires_fields(
        self, service: UserService, admin: User, caller_for: Any
    ) -> None:
        """Email and name are required."""
        with pytest.raises(ValidationError):
            await service.create_user(caller_for(admin), "a@acme.test", " ")


class TestUpdateAndDelete:
    """Tests for update_permissions and delete_user."""

    async def test_update_permissions(
        self, service: UserService, admin: User, manager: User, caller_for: Any
    ) -> None:
        """Flags and role change; unspecified flags stay."""
        user = await service.update_permissions(
            caller_for(admin), manager.id, role=UserRole.ADMIN, can_manage_services=False
        )

        assert user.role is UserRole.ADMIN
        assert not user.can_manage_services
        assert user.can_manage_incidents

    async def test_update_other_org_denied(
        self,
        service: UserService,
        store: InMemoryStatusStore,
        other_org: Organization,
        admin: User,
        caller_for: Any,
    ) -> None:
        """Admins only manage users of their organization."""
        outsider = await store.create_user("x@globex.test", "X", other_org.id, UserRole.USER)

        with pytest.raises(AuthorizationError):
            await service.update_permissions(caller_for(admin), outsider.id, can_manage_users=True)

    async def test_delete_user(
        self,
        service: UserService,
        store: InMemoryStatusStore,
        admin: User,
        manager: User,
        caller_for: Any,
    ) -> None:
        """Admins delete users of their organization."""
        await service.delete_user(caller_for(admin), manager.id)

        assert await store.get_user(manager.id) is None

    async def test_cannot_delete_self(
        self, service: UserService, admin: User, caller_for: Any
    ) -> None:
        """Admins cannot delete their own account."""
        with pytest.raises(ValidationError, match="your own account"):
            await service.delete_user(caller_for(admin), admin.id)

    async def test_delete_missing(
        self, service: UserService, admin: User, caller_for: Any
    ) -> None:
        """Unknown users are NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.delete_user(caller_for(admin), "nope")
