"""Campaign service — business logic for survey campaigns.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.

A campaign's id doubles as the public survey id in links, so it is built
from the company name plus a millisecond timestamp. The company slug is
the tenant id that dashboard tokens and Socket.IO rooms use.
"""

import re
import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leap.config import settings
from leap.db.models import Campaign
from leap.schemas.campaign import CampaignCreate, CampaignUpdate


class CampaignNotFoundError(Exception):
    """Raised when a campaign id doesn't exist."""
    pass


_AUDIENCES = {
    "managers": "Leadership Team",
    "employees": "General Employees",
}


def slugify(value: str) -> str:
    """'Acme Corp, Inc.' → 'acme-corp-inc'"""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def survey_link(campaign_id: str, module: str) -> str:
    return f"{settings.frontend_url}?module={module}&surveyId={campaign_id}"


class CampaignService:
    """Business logic for campaign CRUD."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_campaign(self, body: CampaignCreate) -> Campaign:
        company_id = slugify(body.company_name)
        campaign_id = f"{company_id}-{int(time.time() * 1000)}"
        primary = body.primary_module.value
        campaign = Campaign(
            id=campaign_id,
            name=f"{body.company_name} Survey",
            company_name=body.company_name,
            company_id=company_id,
            status="active",
            target_audience=_AUDIENCES.get(body.target_audience, body.target_audience),
            modules=[m.value for m in body.modules],
            primary_module=primary,
            start_date=body.start_date,
            end_date=body.end_date,
            participant_count=body.participant_count,
            survey_url=survey_link(campaign_id, primary),
        )
        self.db.add(campaign)
        await self.db.commit()
        return campaign

    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        result = await self.db.execute(
            select(Campaign).where(Campaign.id == campaign_id)
        )
        return result.scalars().first()

    async def require_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    async def list_campaigns(
        self,
        company_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Campaign]:
        query = select(Campaign).order_by(Campaign.created_at.desc())
        if company_id:
            query = query.where(Campaign.company_id == company_id)
        if status:
            query = query.where(Campaign.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_campaign(self, campaign_id: str, body: CampaignUpdate) -> Campaign:
        """Apply the fields that were sent. Ids and counters are read-only."""
        campaign = await self.require_campaign(campaign_id)
        for key, value in body.model_dump(exclude_unset=True).items():
            setattr(campaign, key, value)
        campaign.last_updated = datetime.now(timezone.utc)
        self._refresh_completion(campaign)
        await self.db.commit()
        return campaign

    async def delete_campaign(self, campaign_id: str) -> None:
        campaign = await self.require_campaign(campaign_id)
        await self.db.delete(campaign)
        await self.db.commit()

    async def record_submission(self, campaign: Campaign, timestamp: datetime) -> None:
        """Count one more submission. Caller commits."""
        campaign.response_count = (campaign.response_count or 0) + 1
        campaign.last_updated = timestamp
        self._refresh_completion(campaign)

    @staticmethod
    def _refresh_completion(campaign: Campaign) -> None:
        if campaign.participant_count:
            campaign.completion_rate = round(
                min(campaign.response_count / campaign.participant_count, 1.0) * 100, 1
            )
