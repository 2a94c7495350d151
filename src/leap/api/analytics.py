"""Analytics API — the authoritative numbers behind every dashboard.

Learn: Dashboards call these on load and again whenever a realtime event
arrives. `surveyId` is camelCase in the query string because that is
how dashboard and survey links spell it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leap.assessments import ModuleId
from leap.db.engine import get_db
from leap.schemas.analytics import ModuleAnalytics, OverviewAnalytics
from leap.services.analytics_service import AnalyticsService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


@router.get("/analytics/overview", response_model=OverviewAnalytics)
async def overview(
    survey_id: Optional[str] = Query(None, alias="surveyId"),
    svc: AnalyticsService = Depends(_svc),
):
    return await svc.overview(survey_id)


@router.get("/analytics/{module}", response_model=ModuleAnalytics)
async def module_analytics(
    module: ModuleId,
    survey_id: Optional[str] = Query(None, alias="surveyId"),
    svc: AnalyticsService = Depends(_svc),
):
    return await svc.module_analytics(module, survey_id)
