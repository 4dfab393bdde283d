"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import analytics, athletes, maintenance, schedules, sessions

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    athletes.router, prefix="/athletes", tags=["Athletes"]
)
api_router.include_router(
    schedules.router,
    prefix="/athletes/{athlete_id}/schedules",
    tags=["Weekly schedule"],
)
api_router.include_router(
    sessions.router,
    prefix="/athletes/{athlete_id}/sessions",
    tags=["Sessions"],
)
api_router.include_router(
    analytics.router,
    prefix="/athletes/{athlete_id}/analytics",
    tags=["Analytics"],
)
api_router.include_router(
    maintenance.router, prefix="/maintenance", tags=["Maintenance"]
)
