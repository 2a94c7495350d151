"""Analytics service — what dashboards refetch after a realtime hint.

Learn: Scores are computed in Python over the stored answer rows. Every
number here is "share of positive answers" for the module's threshold
(see leap.assessments), broken down by department or question.
"""

from collections import defaultdict
from datetime import datetime, time, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leap.assessments import ModuleId, assessment_for, positive_percentage
from leap.db.models import SurveyResponse


class AnalyticsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _values(
        self, module: ModuleId, survey_id: Optional[str]
    ) -> list[SurveyResponse]:
        query = select(SurveyResponse).where(SurveyResponse.module == module.value)
        if survey_id:
            query = query.where(SurveyResponse.survey_id == survey_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def overview(self, survey_id: Optional[str] = None) -> dict:
        scores = {}
        total = 0
        for module in ModuleId:
            rows = await self._values(module, survey_id)
            scores[module] = positive_percentage([r.response for r in rows], module)
            total += len(rows)
        return {
            "ai_readiness": scores[ModuleId.AI_READINESS],
            "leadership": scores[ModuleId.LEADERSHIP],
            "employee_experience": scores[ModuleId.EMPLOYEE_EXPERIENCE],
            "total_responses": total,
            "last_updated": datetime.now(timezone.utc),
        }

    async def module_analytics(
        self, module: ModuleId, survey_id: Optional[str] = None
    ) -> dict:
        """Positive score plus department and per-question breakdowns."""
        assessment = assessment_for(module)
        rows = await self._values(module, survey_id)

        by_department: dict[str, list[int]] = defaultdict(list)
        by_question: dict[str, list[int]] = defaultdict(list)
        for row in rows:
            if row.department:
                by_department[row.department].append(row.response)
            by_question[row.question_id].append(row.response)

        return {
            "module": assessment.module.value,
            "positive_score": positive_percentage([r.response for r in rows], module),
            "total_responses": len(rows),
            "demographics": [
                {
                    "department": department,
                    "score": positive_percentage(values, module),
                    "count": len(values),
                }
                for department, values in sorted(by_department.items())
            ],
            "question_scores": [
                {
                    "question_id": question_id,
                    "score": positive_percentage(values, module),
                    "count": len(values),
                }
                for question_id, values in sorted(by_question.items())
            ],
        }

    async def response_counts(self, survey_id: Optional[str] = None) -> tuple[int, int]:
        """(all submissions, submissions since midnight UTC)."""
        midnight = datetime.combine(
            datetime.now(timezone.utc).date(), time.min, tzinfo=timezone.utc
        )
        base = select(func.count(func.distinct(SurveyResponse.submission_id)))
        if survey_id:
            base = base.where(SurveyResponse.survey_id == survey_id)
        total = (await self.db.execute(base)).scalar_one()
        today = (
            await self.db.execute(base.where(SurveyResponse.timestamp >= midnight))
        ).scalar_one()
        return total, today
