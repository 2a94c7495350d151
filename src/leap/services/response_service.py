"""Response service — the response store's write and read paths.

Learn: submit() is the only producer of "response created" events:
1. Validate every answer against the module's scale
2. Write one row per answered question (shared submission id + timestamp)
3. Bump the campaign's response counter
4. Commit — and only then notify the realtime hub (inline mode)

If anything before the commit fails, nothing is announced. The hub call
itself is best-effort; a dashboard that misses it catches up on its
next analytics fetch.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leap.assessments import ModuleId, assessment_for
from leap.db.models import SurveyResponse
from leap.realtime.hub import RealtimeHub
from leap.schemas.response import ResponseSubmit
from leap.services.campaign_service import CampaignService

logger = structlog.get_logger()


class InvalidResponseError(Exception):
    """Raised when an answer is outside the module's scale."""
    pass


class ResponseService:
    def __init__(self, db: AsyncSession, hub: Optional[RealtimeHub] = None):
        self.db = db
        self.hub = hub
        self.campaigns = CampaignService(db)

    async def submit(self, body: ResponseSubmit) -> tuple[str, int]:
        """Store a submission. Returns (submission_id, rows written)."""
        assessment = assessment_for(body.module)
        invalid = {
            q: v for q, v in body.responses.items() if not assessment.accepts(v)
        }
        if invalid:
            raise InvalidResponseError(
                f"Answers outside {assessment.scale_min}-{assessment.scale_max} "
                f"for {assessment.module.value}: {invalid}"
            )

        campaign = await self.campaigns.require_campaign(body.survey_id)

        submission_id = uuid.uuid4().hex
        timestamp = datetime.now(timezone.utc)
        department = body.metadata.get("department")
        rows = [
            SurveyResponse(
                submission_id=submission_id,
                survey_id=body.survey_id,
                module=body.module.value,
                question_id=question_id,
                response=value,
                department=str(department) if department else None,
                meta=body.metadata,
                timestamp=timestamp,
            )
            for question_id, value in body.responses.items()
        ]
        self.db.add_all(rows)
        await self.campaigns.record_submission(campaign, timestamp)
        await self.db.commit()

        logger.info(
            "leap.responses.submitted",
            survey_id=body.survey_id,
            module=body.module.value,
            count=len(rows),
        )

        if self.hub is not None:
            try:
                await self.hub.notify(
                    survey_id=body.survey_id,
                    company_id=campaign.company_id,
                    module_id=body.module.value,
                    count=len(rows),
                    timestamp=timestamp,
                )
            except Exception:
                # rows are committed; the request still succeeds
                logger.exception("leap.responses.notify_failed", survey_id=body.survey_id)

        return submission_id, len(rows)

    async def list_for_survey(
        self, survey_id: str, module: Optional[ModuleId] = None
    ) -> list[SurveyResponse]:
        query = (
            select(SurveyResponse)
            .where(SurveyResponse.survey_id == survey_id)
            .order_by(SurveyResponse.id)
        )
        if module:
            query = query.where(SurveyResponse.module == module.value)
        result = await self.db.execute(query)
        return list(result.scalars().all())
