"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: The HTTP API is a thin facade. Every route translates a JSON body
into one NotificationRouter call and maps service exceptions to status
codes. No route touches presence or persistence directly except the
read-only presence and health checks.
"""

from fastapi import APIRouter

from jobrelay.api.health import router as health_router
from jobrelay.api.jobs import router as jobs_router
from jobrelay.api.messages import router as messages_router
from jobrelay.api.notifications import router as notifications_router
from jobrelay.api.presence import router as presence_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(jobs_router, tags=["jobs"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(messages_router, tags=["messages"])
api_router.include_router(presence_router, tags=["presence"])
