"""Survey response API — the write path that feeds realtime updates.

Learn: POST /responses/submit is open (respondents are anonymous survey
takers). In inline notify mode the service gets the hub and announces
the batch after commit; in postgres mode the database trigger does it.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from leap.api.deps import get_hub
from leap.config import settings
from leap.db.engine import get_db
from leap.realtime.hub import RealtimeHub
from leap.schemas.response import ResponseSubmit, SubmissionRead, SurveyResponses
from leap.services.campaign_service import CampaignNotFoundError
from leap.services.response_service import InvalidResponseError, ResponseService

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_hub),
) -> ResponseService:
    return ResponseService(db, hub=hub if settings.notify_source == "inline" else None)


@router.post("/responses/submit", response_model=SubmissionRead, status_code=201)
async def submit_responses(body: ResponseSubmit, svc: ResponseService = Depends(_svc)):
    """Store one respondent's answers for one module."""
    try:
        submission_id, count = await svc.submit(body)
    except InvalidResponseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SubmissionRead(submission_id=submission_id, count=count)


@router.get("/responses/survey/{survey_id}", response_model=SurveyResponses)
async def get_survey_responses(survey_id: str, svc: ResponseService = Depends(_svc)):
    """All stored answers for a survey, grouped by module."""
    rows = await svc.list_for_survey(survey_id)
    grouped: dict[str, list] = {
        "ai_readiness": [],
        "leadership": [],
        "employee_experience": [],
    }
    for row in rows:
        grouped[row.module.replace("-", "_")].append(row)
    return grouped
