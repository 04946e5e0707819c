"""Tests for the access control gate."""

import pytest

from statuspage.core.exceptions import AuthorizationError, ValidationError
from statuspage.core.rbac import (
    CallerContext,
    Permission,
    UserRole,
    ensure_same_organization,
    require_admin,
    require_org_admin,
    require_organization,
    require_organization_admin,
    require_permission,
    require_super_admin,
)


def _caller(
    role: UserRole = UserRole.USER,
    organization_id: str | None = "org-1",
    permissions: frozenset[Permission] = frozenset(),
    is_org_admin: bool = False,
) -> CallerContext:
    return CallerContext(
        user_id="u1",
        organization_id=organization_id,
        role=role,
        permissions=permissions,
        is_org_admin=is_org_admin,
    )


class TestRequirePermission:
    """Tests for require_permission."""

    def test_allows_flag(self) -> None:
        """A caller holding the flag passes."""
        caller = _caller(permissions=frozenset({Permission.MANAGE_INCIDENTS}))

        require_permission(caller, Permission.MANAGE_INCIDENTS)

    def test_denies_missing_flag(self) -> None:
        """A caller without the flag is rejected."""
        caller = _caller(permissions=frozenset({Permission.MANAGE_SERVICES}))

        with pytest.raises(AuthorizationError, match="Insufficient permissions"):
            require_permission(caller, Permission.MANAGE_INCIDENTS)

    def test_role_does_not_imply_flag(self) -> None:
        """Super admins still need the flag."""
        with pytest.raises(AuthorizationError):
            require_permission(_caller(UserRole.SUPER_ADMIN), Permission.MANAGE_SERVICES)


class TestRoleChecks:
    """Tests for role-based checks."""

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.SUPER_ADMIN])
    def test_admin_roles_pass_require_admin(self, role: UserRole) -> None:
        """Admin and super admin are admins."""
        require_admin(_caller(role))

    def test_user_fails_require_admin(self) -> None:
        """Plain users are not admins."""
        with pytest.raises(AuthorizationError, match="Admin access required"):
            require_admin(_caller())

    def test_require_super_admin(self) -> None:
        """Only super admins pass."""
        require_super_admin(_caller(UserRole.SUPER_ADMIN, organization_id=None))
        with pytest.raises(AuthorizationError, match="Super admin access required"):
            require_super_admin(_caller(UserRole.ADMIN))

    def test_require_org_admin_uses_flag(self) -> None:
        """Team management follows the org-admin flag, not the role."""
        require_org_admin(_caller(is_org_admin=True))
        with pytest.raises(AuthorizationError, match="organization admins"):
            require_org_admin(_caller(UserRole.ADMIN))


class TestRequireOrganizationAdmin:
    """Tests for require_organization_admin."""

    def test_super_admin_any_org(self) -> None:
        """Super admins administer every organization."""
        require_organization_admin(_caller(UserRole.SUPER_ADMIN, organization_id=None), "org-9")

    def test_org_admin_own_org(self) -> None:
        """Org admins administer their own organization."""
        require_organization_admin(_caller(is_org_admin=True), "org-1")

    def test_org_admin_other_org(self) -> None:
        """Org admins cannot touch other organizations."""
        with pytest.raises(AuthorizationError, match="your own organization"):
            require_organization_admin(_caller(is_org_admin=True), "org-2")

    def test_plain_user(self) -> None:
        """Users without admin rights are rejected."""
        with pytest.raises(AuthorizationError, match="Only organization admins"):
            require_organization_admin(_caller(), "org-1")


class TestTenantScope:
    """Tests for ensure_same_organization and require_organization."""

    def test_same_org_passes(self) -> None:
        """Entities of the caller's organization are in scope."""
        ensure_same_organization(_caller(), "org-1")

    def test_other_org_denied(self) -> None:
        """Entities of another organization are out of scope."""
        with pytest.raises(AuthorizationError, match="another organization"):
            ensure_same_organization(_caller(), "org-2")

    def test_super_admin_crosses_tenants(self) -> None:
        """Super admins see every tenant."""
        ensure_same_organization(_caller(UserRole.SUPER_ADMIN, organization_id=None), "org-2")

    def test_require_organization(self) -> None:
        """The caller's organization id is returned or a ValidationError raised."""
        assert require_organization(_caller()) == "org-1"
        with pytest.raises(ValidationError, match="not assigned"):
            require_organization(_caller(organization_id=None))
