"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from statuspage.adapters.db.memory import InMemoryStatusStore
from statuspage.core.domain_types import Organization, User
from statuspage.core.events import StatusEvent
from statuspage.core.rbac import CallerContext, UserRole
from statuspage.core.reconciler import StatusReconciler
from statuspage.services.incidents import IncidentService

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock shared by the store and the services."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingPublisher:
    """EventPublisher that keeps every broadcast event."""

    def __init__(self) -> None:
        self.events: list[StatusEvent] = []

    async def broadcast(self, event: StatusEvent) -> int:
        self.events.append(event)
        return 1

    @property
    def types(self) -> list[str]:
        return [event.type for event in self.events]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def clock() -> FakeClock:
    """Return a clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStatusStore:
    """Return an empty in-memory store driven by the fake clock."""
    return InMemoryStatusStore(clock=clock)


@pytest.fixture
def publisher() -> RecordingPublisher:
    """Return a publisher that records events."""
    return RecordingPublisher()


@pytest.fixture
def reconciler(store: InMemoryStatusStore, publisher: RecordingPublisher) -> StatusReconciler:
    """Return a reconciler over the store and recording publisher."""
    return StatusReconciler(store, publisher)


@pytest.fixture
def incident_service(
    store: InMemoryStatusStore,
    publisher: RecordingPublisher,
    reconciler: StatusReconciler,
    clock: FakeClock,
) -> IncidentService:
    """Return an incident service sharing the fake clock."""
    return IncidentService(store, publisher, reconciler, clock=clock)


@pytest.fixture
async def org(store: InMemoryStatusStore) -> Organization:
    """Return a sample organization."""
    return await store.create_organization(name="Acme", slug="acme")


@pytest.fixture
async def other_org(store: InMemoryStatusStore) -> Organization:
    """Return a second organization."""
    return await store.create_organization(name="Globex", slug="globex")


@pytest.fixture
async def manager(store: InMemoryStatusStore, org: Organization) -> User:
    """Return a user allowed to manage services and incidents."""
    return await store.create_user(
        email="ops@acme.test",
        name="Ops Person",
        organization_id=org.id,
        role=UserRole.USER,
        can_manage_services=True,
        can_manage_incidents=True,
    )


@pytest.fixture
async def viewer(store: InMemoryStatusStore, org: Organization) -> User:
    """Return a user without capability flags."""
    return await store.create_user(
        email="viewer@acme.test",
        name="Viewer",
        organization_id=org.id,
        role=UserRole.USER,
    )


@pytest.fixture
async def admin(store: InMemoryStatusStore, org: Organization) -> User:
    """Return an organization admin with every flag."""
    return await store.create_user(
        email="admin@acme.test",
        name="Admin",
        organization_id=org.id,
        role=UserRole.ADMIN,
        can_manage_services=True,
        can_manage_incidents=True,
        can_manage_users=True,
        is_org_admin=True,
    )


@pytest.fixture
async def super_admin(store: InMemoryStatusStore) -> User:
    """Return a platform super admin without an organization."""
    return await store.create_user(
        email="root@platform.test",
        name="Root",
        organization_id=None,
        role=UserRole.SUPER_ADMIN,
    )


@pytest.fixture
def caller_for() -> Callable[[User], CallerContext]:
    """Return a function building a CallerContext from a user."""

    def build(user: User) -> CallerContext:
        return CallerContext(
            user_id=user.id,
            organization_id=user.organization_id,
            role=user.role,
            permissions=user.permissions,
            is_org_admin=user.is_org_admin,
        )

    return build
