"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running,
the database answers, and reports live realtime connection counts.
Redis is optional, so "unavailable" doesn't degrade the status.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leap import __version__
from leap.api.deps import get_hub
from leap.db.engine import get_db
from leap.db.redis import get_redis
from leap.realtime.hub import RealtimeHub

router = APIRouter()


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "unavailable"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks, "connections": hub.connection_counts()}
