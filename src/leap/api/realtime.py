"""Realtime HTTP routes — push stream and live stats.

Learn: GET /realtime/stream is a long-lived text/event-stream response.
The route only builds the connection; ServerPushChannel registers it,
runs the frame loop and unregisters when the client goes away.

The stream is anonymous by default. LEAP_SSE_REQUIRE_AUTH=true demands
a `?token=` whose company owns the requested survey. Anonymous dashboards
then get 401.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leap.api.deps import get_hub
from leap.auth.jwt import TokenError, company_from_token
from leap.config import settings
from leap.db.engine import get_db
from leap.realtime.hub import RealtimeHub
from leap.schemas.analytics import RealtimeStats
from leap.services.analytics_service import AnalyticsService
from leap.services.campaign_service import CampaignService

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _authorize_stream(
    token: Optional[str], survey_id: Optional[str], db: AsyncSession
) -> None:
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        company_id = company_from_token(token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    if survey_id:
        campaign = await CampaignService(db).get_campaign(survey_id)
        if not campaign or campaign.company_id != company_id:
            raise HTTPException(status_code=403, detail="Token not valid for survey")


@router.get("/realtime/stream")
async def stream(
    survey_id: Optional[str] = Query(None, alias="surveyId"),
    token: Optional[str] = Query(None),
    hub: RealtimeHub = Depends(get_hub),
    db: AsyncSession = Depends(get_db),
):
    """Server-Sent Events stream of response notifications."""
    if settings.sse_require_auth:
        await _authorize_stream(token, survey_id, db)

    connection = hub.push.connect(survey_id)
    return StreamingResponse(
        hub.push.stream(connection),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/realtime/stats", response_model=RealtimeStats)
async def stats(
    survey_id: Optional[str] = Query(None, alias="surveyId"),
    hub: RealtimeHub = Depends(get_hub),
    db: AsyncSession = Depends(get_db),
):
    total, today = await AnalyticsService(db).response_counts(survey_id)
    return RealtimeStats(
        total_responses=total,
        today_responses=today,
        active_connections=hub.connection_counts(),
    )
