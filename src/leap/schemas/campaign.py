"""Pydantic schemas for campaigns.

Learn: Pydantic v2 models validate request/response data. Separate
"Create"/"Update" schemas (input) from "Read" schemas (output).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from leap.assessments import ModuleId


class CampaignCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=100)
    target_audience: str = Field(default="", max_length=100)
    modules: list[ModuleId] = Field(..., min_length=1)
    primary_module: ModuleId
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    participant_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def primary_module_is_included(self):
        if self.primary_module not in self.modules:
            raise ValueError("primary_module must be one of modules")
        return self


class CampaignUpdate(BaseModel):
    """Partial update — only fields that are sent get written."""
    status: Optional[str] = Field(default=None, pattern=r"^(active|completed|draft)$")
    target_audience: Optional[str] = Field(default=None, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    participant_count: Optional[int] = Field(default=None, ge=0)


class CampaignRead(BaseModel):
    id: str
    name: str
    company_name: str
    company_id: str
    status: str
    target_audience: str
    modules: list[str]
    primary_module: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    participant_count: int
    response_count: int
    completion_rate: float
    survey_url: str
    created_at: Optional[datetime]
    last_updated: Optional[datetime]

    model_config = {"from_attributes": True}
