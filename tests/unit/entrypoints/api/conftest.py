"""Fixtures for API tests: the real app on in-memory storage."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import jwt
import pytest
from fastapi.testclient import TestClient

from statuspage.adapters.db.memory import InMemoryStatusStore
from statuspage.core.domain_types import Organization, User
from statuspage.core.rbac import UserRole
from statuspage.entrypoints.api import deps
from statuspage.entrypoints.api.app import create_app


@dataclass
class ApiHarness:
    """A running app with one seeded organization."""

    client: TestClient
    store: InMemoryStatusStore
    org: Organization
    manager: User
    viewer: User
    admin: User
    super_admin: User

    def headers(self, user: User) -> dict[str, str]:
        """Bearer headers for a user."""
        token = jwt.encode(
            {"sub": user.id},
            deps.settings.jwt_secret_key,
            algorithm=deps.settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}


async def _seed(store: InMemoryStatusStore) -> tuple[Organization, User, User, User, User]:
    org = await store.create_organization("Acme", "acme")
    manager = await store.create_user(
        "ops@acme.test",
        "Ops Person",
        org.id,
        UserRole.USER,
        can_manage_services=True,
        can_manage_incidents=True,
    )
    viewer = await store.create_user("viewer@acme.test", "Viewer", org.id, UserRole.USER)
    admin = await store.create_user(
        "admin@acme.test",
        "Admin",
        org.id,
        UserRole.ADMIN,
        can_manage_services=True,
        can_manage_incidents=True,
        can_manage_users=True,
        is_org_admin=True,
    )
    root = await store.create_user("root@platform.test", "Root", None, UserRole.SUPER_ADMIN)
    return org, manager, viewer, admin, root


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch) -> Iterator[ApiHarness]:
    """Run the app with in-memory storage and seed an organization.

    The client is used as a context manager so HTTP requests and
    WebSocket sessions share one event loop.
    """
    monkeypatch.setattr(deps.settings, "storage", "memory")
    app = create_app()
    with TestClient(app) as client:
        store: InMemoryStatusStore = app.state.store
        org, manager, viewer, admin, root = client.portal.call(_seed, store)
        yield ApiHarness(
            client=client,
            store=store,
            org=org,
            manager=manager,
            viewer=viewer,
            admin=admin,
            super_admin=root,
        )
