"""Organization (tenant) service."""
import re

import structlog

from statuspage.core.domain_types import Organization
from statuspage.core.exceptions import ConflictError, NotFoundError, ValidationError
from statuspage.core.interfaces import StatusStore
from statuspage.core.rbac import (
    CallerContext,
    require_organization,
    require_organization_admin,
    require_super_admin,
)

logger = structlog.get_logger()

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class OrganizationService:
    """Service for multi-tenant operations."""

    def __init__(self, store: StatusStore):
        self.store = store

    async def create_organization(
        self,
        caller: CallerContext,
        name: str,
        slug: str | None = None,
        description: str | None = None,
    ) -> Organization:
        """Create a new organization. Super admins only."""
        require_super_admin(caller)
        if not name or not name.strip():
            raise ValidationError("Name is required")

        # Generate slug from name if not provided
        slug = slug or self._generate_slug(name)
        self._validate_slug(slug)

        if await self.store.get_organization_by_slug(slug):
            raise ConflictError(f"Organization slug '{slug}' already exists")

        org = await self.store.create_organization(
            name=name.strip(), slug=slug, description=description
        )

        logger.info("organization_created", organization_id=org.id, slug=slug)
        return org

    async def get_organization_by_slug(self, slug: str) -> Organization:
        """Get organization by slug, for public pages."""
        org = await self.store.get_organization_by_slug(slug)
        if org is None:
            raise NotFoundError("Organization not found")
        return org

    async def get_current_organization(self, caller: CallerContext) -> Organization:
        """Get the caller's own organization."""
        if not caller.organization_id:
            raise NotFoundError("No organization found")
        org = await self.store.get_organization(caller.organization_id)
        if org is None:
            raise NotFoundError("No organization found")
        return org

    async def list_organizations(self, caller: CallerContext) -> list[Organization]:
        """List all organizations. Super admins only."""
        require_super_admin(caller)
        return await self.store.list_organizations()

    async def update_organization(
        self,
        caller: CallerContext,
        organization_id: str,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
    ) -> Organization:
        """Update an organization.

        Super admins may update any organization; org admins only their own.
        """
        require_organization_admin(caller, organization_id)
        if name is not None and not name.strip():
            raise ValidationError("Name cannot be empty")
        if slug is not None:
            self._validate_slug(slug)
            existing = await self.store.get_organization_by_slug(slug)
            if existing and existing.id != organization_id:
                raise ConflictError(f"Organization slug '{slug}' already exists")

        org = await self.store.update_organization(
            organization_id, name=name, slug=slug, description=description
        )
        if org is None:
            raise NotFoundError("Organization not found")

        logger.info("organization_updated", organization_id=organization_id)
        return org

    async def delete_organization(self, caller: CallerContext, organization_id: str) -> None:
        """Delete an organization. Super admins only."""
        require_super_admin(caller)
        if not await self.store.delete_organization(organization_id):
            raise NotFoundError("Organization not found")
        logger.info("organization_deleted", organization_id=organization_id)

    async def scoped_organization_id(
        self, caller: CallerContext, org_slug: str | None = None
    ) -> str:
        """Organization an authenticated listing applies to.

        Super admins may pick any organization by slug; everyone else is
        pinned to their own.
        """
        if caller.is_super_admin and org_slug:
            return (await self.get_organization_by_slug(org_slug)).id
        return require_organization(caller)

    def _validate_slug(self, slug: str) -> None:
        if not SLUG_PATTERN.match(slug):
            raise ValidationError(
                "Slug must contain only lowercase letters, digits and single hyphens"
            )

    def _generate_slug(self, name: str) -> str:
        """Generate a URL-safe slug from a name."""
        # Convert to lowercase
        slug = name.lower()
        # Replace spaces and special chars with hyphens
        slug = re.sub(r"[^a-z0-9]+", "-", slug)
        # Remove leading/trailing hyphens
        slug = slug.strip("-")
        # Limit length
        return slug[:50].strip("-")
