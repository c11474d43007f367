# app/api/v1/endpoints/campaigns.py
from fastapi import APIRouter, Depends, Query

from core.dependencies import get_campaign_service, get_donation_service
from services.campaign_service import CampaignService
from services.donation_service import DonationService
from schemas.campaign import CampaignCreate, CampaignRead, CampaignPublic
from schemas.donation import DonationPublic
from utils.pagination import PaginatedResponse, page_offset, paginate

router = APIRouter()


@router.post("", response_model=CampaignRead, status_code=201)
async def create_campaign(
        campaign_data: CampaignCreate,
        service: CampaignService = Depends(get_campaign_service)
):
    """Register a campaign; it stays hidden until the pack is paid and an admin approves it"""
    return await service.create_campaign(campaign_data)


@router.get("", response_model=PaginatedResponse[CampaignPublic])
async def list_campaigns(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        service: CampaignService = Depends(get_campaign_service)
):
    items, total = await service.list_public_campaigns(page_offset(page, limit), limit)
    return paginate(items, total, page, limit)


@router.get("/{campaign_number}", response_model=CampaignPublic)
async def get_campaign(
        campaign_number: int,
        service: CampaignService = Depends(get_campaign_service)
):
    return await service.get_public_campaign(campaign_number)


@router.get("/{campaign_id}/donations", response_model=PaginatedResponse[DonationPublic])
async def list_campaign_donations(
        campaign_id: str,
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=200),
        service: DonationService = Depends(get_donation_service)
):
    items, total = await service.list_public_donations(campaign_id, page_offset(page, limit), limit)
    return paginate(items, total, page, limit)
