"""Pydantic schemas for analytics and realtime stats."""

from datetime import datetime

from pydantic import BaseModel


class OverviewAnalytics(BaseModel):
    ai_readiness: float
    leadership: float
    employee_experience: float
    total_responses: int
    last_updated: datetime


class DepartmentScore(BaseModel):
    department: str
    score: float
    count: int


class QuestionScore(BaseModel):
    question_id: str
    score: float
    count: int


class ModuleAnalytics(BaseModel):
    module: str
    positive_score: float
    total_responses: int
    demographics: list[DepartmentScore] = []
    question_scores: list[QuestionScore] = []


class RealtimeStats(BaseModel):
    total_responses: int
    today_responses: int
    active_connections: dict[str, int]
