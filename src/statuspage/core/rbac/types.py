"""RBAC domain types."""

from dataclasses import dataclass, field
from enum import Enum


class UserRole(str, Enum):
    """Platform roles."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    USER = "user"


class TeamRole(str, Enum):
    """Per-membership role inside a team."""

    ADMIN = "admin"
    MEMBER = "member"


class Permission(str, Enum):
    """Independent capability flags carried by each user."""

    MANAGE_SERVICES = "manage_services"
    MANAGE_INCIDENTS = "manage_incidents"
    MANAGE_USERS = "manage_users"


@dataclass
class CallerContext:
    """Resolved identity of the caller of a command.

    Authentication produces this; the access gate only reads it.
    """

    user_id: str
    organization_id: str | None
    role: UserRole
    permissions: frozenset[Permission] = field(default_factory=frozenset)
    is_org_admin: bool = False

    @property
    def is_super_admin(self) -> bool:
        """Whether the caller administers the whole platform."""
        return self.role == UserRole.SUPER_ADMIN

    @property
    def is_admin(self) -> bool:
        """Whether the caller holds an admin role."""
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    def has_permission(self, permission: Permission) -> bool:
        """Check a single capability flag."""
        return permission in self.permissions
