"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations are written against these models.

Key concepts:
- Campaign ids are readable slugs (`acme-corp-1718000000000`) because they
  end up in survey links
- One SurveyResponse row per answered question, not per submission — the
  analytics queries filter and count rows
- Generic JSON columns (not JSONB) so tests can run on SQLite
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Campaign(Base):
    """A client-scoped survey run: one company, one audience, 1-3 modules.

    Learn: company_id is the tenant key. It's what dashboard tokens carry
    and what Socket.IO rooms are named after.
    """

    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(150), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    company_name: Mapped[str] = mapped_column(String(100), nullable=False)
    company_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    target_audience: Mapped[str] = mapped_column(String(100), default="")
    modules: Mapped[list] = mapped_column(JSON, default=list)
    primary_module: Mapped[str] = mapped_column(String(30), nullable=False)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    participant_count: Mapped[int] = mapped_column(Integer, default=0)
    response_count: Mapped[int] = mapped_column(Integer, default=0)
    completion_rate: Mapped[float] = mapped_column(Float, default=0.0)
    survey_url: Mapped[str] = mapped_column(String(500), default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    last_updated: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )


class SurveyResponse(Base):
    """One answer to one question.

    Learn: A submission of 12 answers becomes 12 rows sharing a
    submission_id and timestamp. Respondent metadata (department, role...)
    is copied onto every row so demographic breakdowns are a GROUP BY.
    """

    __tablename__ = "survey_responses"
    __table_args__ = (
        Index("ix_survey_responses_survey_module", "survey_id", "module"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    survey_id: Mapped[str] = mapped_column(
        String(150), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    module: Mapped[str] = mapped_column(String(30), nullable=False)
    question_id: Mapped[str] = mapped_column(String(100), nullable=False)
    response: Mapped[int] = mapped_column(Integer, nullable=False)
    department: Mapped[Optional[str]] = mapped_column(String(100))
    meta: Mapped[dict] = mapped_column(JSON, default=dict)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
