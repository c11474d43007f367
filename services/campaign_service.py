# app/services/campaign_service.py
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, List, Tuple
import logging

from core.exceptions import NotFoundError
from models.campaign import Campaign, PaymentStatus
from schemas.campaign import CampaignCreate, CampaignPublic
from services.order_store import OrderStateStore
from services.realtime import ChangeFeed

logger = logging.getLogger(__name__)


class CampaignService:
    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.store = OrderStateStore(db, feed)

    # ---------- Create ----------
    async def create_campaign(self, campaign_data: CampaignCreate) -> Campaign:
        """New campaigns start unapproved with the pack unpaid."""
        values = campaign_data.model_dump()
        values.update(
            is_active=True,
            is_approved=False,
            pack_payment_status=PaymentStatus.PENDING,
        )
        campaign = await self.store.create_campaign(values)
        logger.info(f"Campaign #{campaign.campaign_number} created ({campaign.id})")
        return campaign

    # ---------- Public reads ----------
    async def get_public_campaign(self, campaign_number: int) -> CampaignPublic:
        campaign = await self.store.get_campaign_by_number(campaign_number)
        if not campaign or not campaign.is_public:
            raise NotFoundError("Campaign not found", code="campaign_not_found")
        raised = await self.store.raised_amount(campaign.id)
        return self._to_public(campaign, raised)

    async def list_public_campaigns(self, offset: int = 0, limit: int = 20) -> Tuple[List[CampaignPublic], int]:
        campaigns, total = await self.store.list_campaigns(public_only=True, offset=offset, limit=limit)
        totals = await self.store.raised_amounts(c.id for c in campaigns)
        return [self._to_public(c, totals[c.id]) for c in campaigns], total

    async def list_campaigns(self, offset: int = 0, limit: int = 20) -> Tuple[List[Campaign], int]:
        return await self.store.list_campaigns(offset=offset, limit=limit)

    async def raised_amount(self, campaign_id: str):
        await self.store.require_campaign(campaign_id)
        return await self.store.raised_amount(campaign_id)

    @staticmethod
    def _to_public(campaign: Campaign, raised) -> CampaignPublic:
        return CampaignPublic(
            id=campaign.id,
            campaign_number=campaign.campaign_number,
            title=campaign.title,
            organizer=campaign.organizer,
            county=campaign.county,
            story=campaign.story,
            goal_amount=campaign.goal_amount,
            raised_amount=raised,
            event_date=campaign.event_date,
            event_time=campaign.event_time,
            location=campaign.location,
            image=campaign.image,
            social_links=campaign.social_links,
        )
