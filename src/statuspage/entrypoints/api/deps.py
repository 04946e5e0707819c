"""Dependency injection and application lifespan management."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import Request

from statuspage.adapters.db.app_db import AppDatabase
from statuspage.adapters.db.memory import InMemoryStatusStore
from statuspage.core.interfaces import StatusStore
from statuspage.core.reconciler import StatusReconciler
from statuspage.core.timeline import DEFAULT_LOOKBACK_DAYS, TimelineBuilder
from statuspage.services.catalog import ServiceCatalog
from statuspage.services.incidents import IncidentService
from statuspage.services.notification import DEFAULT_SEND_TIMEOUT_SECONDS, NotificationHub
from statuspage.services.teams import TeamService
from statuspage.services.tenant import OrganizationService
from statuspage.services.users import UserService

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv(
            "DATABASE_URL", "postgresql://localhost:5432/statuspage"
        )
        self.storage = os.getenv("STATUSPAGE_STORAGE", "postgres").lower()
        self.apply_schema = os.getenv("STATUSPAGE_APPLY_SCHEMA", "").lower() == "true"

        # Auth
        self.jwt_secret_key = os.getenv("JWT_SECRET_KEY", "dev-secret-change-in-production")
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")

        self.timeline_default_days = int(
            os.getenv("TIMELINE_DEFAULT_DAYS", str(DEFAULT_LOOKBACK_DAYS))
        )
        self.viewer_send_timeout = float(
            os.getenv("VIEWER_SEND_TIMEOUT_SECONDS", str(DEFAULT_SEND_TIMEOUT_SECONDS))
        )

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_format = os.getenv("LOG_FORMAT", "console").lower()


settings = Settings()


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name.
        json_format: If True, render JSON lines instead of console output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: structlog.typing.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def build_services(app: FastAPI, store: StatusStore, hub: NotificationHub) -> None:
    """Wire the store and hub into the services and put them on app state."""
    reconciler = StatusReconciler(store, hub)

    app.state.store = store
    app.state.hub = hub
    app.state.reconciler = reconciler
    app.state.catalog = ServiceCatalog(store, hub)
    app.state.incidents = IncidentService(store, hub, reconciler)
    app.state.organizations = OrganizationService(store)
    app.state.users = UserService(store)
    app.state.teams = TeamService(store)
    app.state.timeline = TimelineBuilder(store)
    app.state.settings = settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Logging configuration
    - Storage setup (PostgreSQL pool, or in-memory)
    - Notification hub and service wiring
    """
    configure_logging(settings.log_level, json_format=settings.log_format == "json")

    app_db: AppDatabase | None = None
    store: StatusStore
    if settings.storage == "memory":
        store = InMemoryStatusStore()
    else:
        app_db = AppDatabase(settings.database_url)
        await app_db.connect()
        if settings.apply_schema:
            await app_db.apply_schema()
        store = app_db

    hub = NotificationHub(send_timeout=settings.viewer_send_timeout)
    build_services(app, store, hub)
    logger.info("statuspage_started", storage=settings.storage)

    try:
        yield
    finally:
        hub.close()
        if app_db is not None:
            await app_db.close()
        logger.info("statuspage_stopped")


def get_store(request: Request) -> StatusStore:
    """Get the status store from app state."""
    store: StatusStore = request.app.state.store
    return store


def get_hub(request: Request) -> NotificationHub:
    """Get the notification hub from app state."""
    hub: NotificationHub = request.app.state.hub
    return hub


def get_catalog(request: Request) -> ServiceCatalog:
    """Get the service catalog from app state."""
    catalog: ServiceCatalog = request.app.state.catalog
    return catalog


def get_incident_service(request: Request) -> IncidentService:
    """Get the incident service from app state."""
    incidents: IncidentService = request.app.state.incidents
    return incidents


def get_organization_service(request: Request) -> OrganizationService:
    """Get the organization service from app state."""
    organizations: OrganizationService = request.app.state.organizations
    return organizations


def get_user_service(request: Request) -> UserService:
    """Get the user service from app state."""
    users: UserService = request.app.state.users
    return users


def get_team_service(request: Request) -> TeamService:
    """Get the team service from app state."""
    teams: TeamService = request.app.state.teams
    return teams


def get_timeline_builder(request: Request) -> TimelineBuilder:
    """Get the timeline builder from app state."""
    timeline: TimelineBuilder = request.app.state.timeline
    return timeline


def get_settings(request: Request) -> Settings:
    """Get settings from app state, falling back to the module default."""
    return getattr(request.app.state, "settings", settings)
