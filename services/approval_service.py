# app/services/approval_service.py
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import BackgroundTasks
from datetime import datetime, timezone
from typing import Optional
import logging

from core.config import settings
from models.campaign import Campaign
from schemas.campaign import CampaignStateRead
from services.campaign_lifecycle import CampaignEvent, derive_state, transition
from services.notification_service import NotificationService
from services.order_store import OrderStateStore
from services.realtime import ChangeFeed

logger = logging.getLogger(__name__)


class ApprovalService:
    """Admin decisions on campaigns, checked against the lifecycle rules."""

    def __init__(self, db: AsyncSession, notifier: NotificationService, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.store = OrderStateStore(db, feed)
        self.notifier = notifier

    async def _pack_order(self, campaign: Campaign):
        if not campaign.pack_order_id:
            return None
        return await self.store.get_pack_order(campaign.pack_order_id)

    async def get_state(self, campaign_id: str) -> CampaignStateRead:
        campaign = await self.store.require_campaign(campaign_id)
        return CampaignStateRead(
            campaign_id=campaign.id,
            state=derive_state(campaign).value,
            pack_payment_status=campaign.pack_payment_status.value,
            is_active=campaign.is_active,
            is_approved=campaign.is_approved,
        )

    async def approve(self, campaign_id: str, background_tasks: Optional[BackgroundTasks] = None) -> Campaign:
        """awaiting_approval -> live, only with a paid pack order."""
        campaign = await self.store.require_campaign(campaign_id)
        pack_order = await self._pack_order(campaign)
        transition(derive_state(campaign), CampaignEvent.APPROVE, pack_order)

        campaign = await self.store.update_campaign(
            campaign,
            is_approved=True,
            approved_at=datetime.now(timezone.utc),
        )
        logger.info(f"Campaign #{campaign.campaign_number} approved")

        await self.notifier.send_campaign_approved(campaign, background_tasks)
        return campaign

    async def reject(self, campaign_id: str, reason: Optional[str] = None,
                     background_tasks: Optional[BackgroundTasks] = None) -> Campaign:
        campaign = await self.store.require_campaign(campaign_id)
        transition(derive_state(campaign), CampaignEvent.REJECT)

        campaign = await self.store.update_campaign(
            campaign,
            is_approved=False,
            is_active=False,
            rejected_at=datetime.now(timezone.utc),
        )
        logger.info(f"Campaign #{campaign.campaign_number} rejected: {reason or 'no reason given'}")

        if settings.NOTIFY_ON_REJECTION:
            await self.notifier.send_campaign_rejected(campaign, reason, background_tasks)
        return campaign

    async def deactivate(self, campaign_id: str) -> Campaign:
        campaign = await self.store.require_campaign(campaign_id)
        transition(derive_state(campaign), CampaignEvent.DEACTIVATE)

        campaign = await self.store.update_campaign(
            campaign,
            is_active=False,
            deactivated_at=datetime.now(timezone.utc),
        )
        logger.info(f"Campaign #{campaign.campaign_number} deactivated")
        return campaign

