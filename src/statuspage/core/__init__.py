"""Core domain - incident/service status reconciliation and event fan-out."""

from statuspage.core.domain_types import (
    Incident,
    IncidentStatus,
    IncidentUpdate,
    Organization,
    Service,
    ServiceStatus,
    Severity,
    Team,
    TeamMember,
    User,
    UserSummary,
)
from statuspage.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StatusPageError,
    TransientStorageError,
    ValidationError,
)
from statuspage.core.interfaces import EventPublisher, StatusStore, ViewerConnection
from statuspage.core.reconciler import StatusReconciler
from statuspage.core.timeline import TimelineBuilder, TimelineEntry
from statuspage.core.visibility import filter_public_incidents, is_publicly_visible

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "EventPublisher",
    "Incident",
    "IncidentStatus",
    "IncidentUpdate",
    "NotFoundError",
    "Organization",
    "Service",
    "ServiceStatus",
    "Severity",
    "StatusPageError",
    "StatusReconciler",
    "StatusStore",
    "Team",
    "TeamMember",
    "TimelineBuilder",
    "TimelineEntry",
    "TransientStorageError",
    "User",
    "UserSummary",
    "ValidationError",
    "ViewerConnection",
    "filter_public_incidents",
    "is_publicly_visible",
]
