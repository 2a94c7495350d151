"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: Survey takers and dashboards hit these routes without accounts.
Tenant auth only guards the realtime channels (Socket.IO always, the
push stream when LEAP_SSE_REQUIRE_AUTH is set).
"""

from fastapi import APIRouter

from leap.api.analytics import router as analytics_router
from leap.api.campaigns import router as campaigns_router
from leap.api.health import router as health_router
from leap.api.realtime import router as realtime_router
from leap.api.responses import router as responses_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(campaigns_router, tags=["campaigns"])
api_router.include_router(responses_router, tags=["responses"])
api_router.include_router(analytics_router, tags=["analytics"])
api_router.include_router(realtime_router, tags=["realtime"])
