"""Access control gate.

Authentication resolves who the caller is; these checks decide whether
that caller may perform a mutation. Every check either returns or raises
AuthorizationError, and none of them touch storage.
"""

from __future__ import annotations

import structlog

from statuspage.core.exceptions import AuthorizationError, ValidationError
from statuspage.core.rbac.types import CallerContext, Permission

logger = structlog.get_logger()


def _deny(caller: CallerContext, reason: str, message: str) -> AuthorizationError:
    logger.warning(
        "access_denied",
        user_id=caller.user_id,
        role=caller.role.value,
        reason=reason,
    )
    return AuthorizationError(message)


def require_permission(caller: CallerContext, permission: Permission) -> None:
    """Require a capability flag.

    Roles do not imply flags: a super admin without the flag is denied.
    """
    if not caller.has_permission(permission):
        raise _deny(caller, f"missing_{permission.value}", "Insufficient permissions")


def require_admin(caller: CallerContext) -> None:
    """Require role admin or super_admin."""
    if not caller.is_admin:
        raise _deny(caller, "not_admin", "Admin access required")


def require_super_admin(caller: CallerContext) -> None:
    """Require role super_admin."""
    if not caller.is_super_admin:
        raise _deny(caller, "not_super_admin", "Super admin access required")


def require_org_admin(caller: CallerContext) -> None:
    """Require the organization-admin flag (distinct from role)."""
    if not caller.is_org_admin:
        raise _deny(caller, "not_org_admin", "Only organization admins can manage teams")


def require_organization_admin(caller: CallerContext, organization_id: str) -> None:
    """Require administrative rights over one specific organization.

    Super admins may administer any organization. Otherwise the caller
    must be an org admin (flag or admin role) of that same organization.
    """
    if caller.is_super_admin:
        return
    if not caller.is_org_admin and not caller.is_admin:
        raise _deny(
            caller, "not_org_admin", "Only organization admins can update organization"
        )
    if caller.organization_id != organization_id:
        raise _deny(
            caller, "foreign_organization", "You can only update your own organization"
        )


def ensure_same_organization(caller: CallerContext, organization_id: str) -> None:
    """Tenant scope check for an entity owned by ``organization_id``."""
    if caller.is_super_admin:
        return
    if caller.organization_id != organization_id:
        raise _deny(caller, "foreign_organization", "Resource belongs to another organization")


def require_organization(caller: CallerContext) -> str:
    """Return the caller's organization id.

    Raises:
        ValidationError: If the caller is not assigned to an organization.
    """
    if not caller.organization_id:
        raise ValidationError("User not assigned to an organization")
    return caller.organization_id
