"""RBAC core domain."""

from statuspage.core.rbac.gate import (
    ensure_same_organization,
    require_admin,
    require_org_admin,
    require_organization,
    require_organization_admin,
    require_permission,
    require_super_admin,
)
from statuspage.core.rbac.types import CallerContext, Permission, TeamRole, UserRole

__all__ = [
    "CallerContext",
    "Permission",
    "TeamRole",
    "UserRole",
    "ensure_same_organization",
    "require_admin",
    "require_org_admin",
    "require_organization",
    "require_organization_admin",
    "require_permission",
    "require_super_admin",
]
