"""API route modules."""

from fastapi import APIRouter

from statuspage.entrypoints.api.routes.events import router as events_router
from statuspage.entrypoints.api.routes.incident_updates import router as incident_updates_router
from statuspage.entrypoints.api.routes.incidents import router as incidents_router
from statuspage.entrypoints.api.routes.organizations import router as organizations_router
from statuspage.entrypoints.api.routes.services import router as services_router
from statuspage.entrypoints.api.routes.teams import router as teams_router
from statuspage.entrypoints.api.routes.timeline import router as timeline_router
from statuspage.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(services_router)
api_router.include_router(incidents_router)
api_router.include_router(incident_updates_router)
api_router.include_router(timeline_router)
api_router.include_router(organizations_router)
api_router.include_router(users_router)
api_router.include_router(teams_router)

__all__ = ["api_router", "events_router"]
