"""Campaign API routes.

Learn: Routes translate HTTP to service calls and map service errors to
status codes (CampaignNotFoundError → 404). The service owns commits.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leap.db.engine import get_db
from leap.schemas.campaign import CampaignCreate, CampaignRead, CampaignUpdate
from leap.services.campaign_service import CampaignNotFoundError, CampaignService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> CampaignService:
    return CampaignService(db)


@router.post("/campaigns", response_model=CampaignRead, status_code=201)
async def create_campaign(body: CampaignCreate, svc: CampaignService = Depends(_svc)):
    return await svc.create_campaign(body)


@router.get("/campaigns", response_model=list[CampaignRead])
async def list_campaigns(
    company_id: Optional[str] = Query(None, description="Filter by company"),
    status: Optional[str] = Query(None, description="Filter by status"),
    svc: CampaignService = Depends(_svc),
):
    return await svc.list_campaigns(company_id=company_id, status=status)


@router.get("/campaigns/{campaign_id}", response_model=CampaignRead)
async def get_campaign(campaign_id: str, svc: CampaignService = Depends(_svc)):
    campaign = await svc.get_campaign(campaign_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


@router.put("/campaigns/{campaign_id}", response_model=CampaignRead)
async def update_campaign(
    campaign_id: str,
    body: CampaignUpdate,
    svc: CampaignService = Depends(_svc),
):
    try:
        return await svc.update_campaign(campaign_id, body)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/campaigns/{campaign_id}", status_code=204)
async def delete_campaign(campaign_id: str, svc: CampaignService = Depends(_svc)):
    try:
        await svc.delete_campaign(campaign_id)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
