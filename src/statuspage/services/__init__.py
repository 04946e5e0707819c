"""Application services."""

from statuspage.services.catalog import ServiceCatalog
from statuspage.services.incidents import IncidentService
from statuspage.services.notification import NotificationHub, handle_control_message
from statuspage.services.teams import TeamService
from statuspage.services.tenant import OrganizationService
from statuspage.services.users import UserService

__all__ = [
    "IncidentService",
    "NotificationHub",
    "OrganizationService",
    "ServiceCatalog",
    "TeamService",
    "UserService",
    "handle_control_message",
]
