"""Pydantic schemas for survey response submission."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from leap.assessments import ModuleId


class ResponseSubmit(BaseModel):
    """One respondent's answers to one module.

    `responses` maps question id → answer; numeric strings are coerced.
    `metadata` is copied onto every stored row (department, role, ...).
    """
    survey_id: str = Field(..., min_length=1, max_length=150)
    module: ModuleId
    responses: dict[str, int] = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SubmissionRead(BaseModel):
    success: bool = True
    submission_id: str
    count: int


class ResponseRead(BaseModel):
    id: int
    submission_id: str
    survey_id: str
    module: str
    question_id: str
    response: int
    department: Optional[str]
    timestamp: datetime

    model_config = {"from_attributes": True}


class SurveyResponses(BaseModel):
    ai_readiness: list[ResponseRead] = []
    leadership: list[ResponseRead] = []
    employee_experience: list[ResponseRead] = []
