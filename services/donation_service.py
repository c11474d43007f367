# app/services/donation_service.py
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from typing import List, Optional, Union, Dict, Any, Tuple
import logging
import re

from core.constants import MIN_DONATION_MINOR_UNITS, EMAIL_PATTERN
from core.exceptions import ValidationError, NotFoundError, PersistenceError
from models.campaign import Campaign
from models.donation import Donation
from schemas.donation import DonorInfo, DonationOutcome, DonationRead, DonationPublic
from schemas.payment import PaymentIntentResult
from services.notification_service import NotificationService
from services.order_store import OrderStateStore
from services.payment_gateway import PaymentGatewayClient
from services.realtime import ChangeFeed

logger = logging.getLogger(__name__)


def _donor(donor_info: Union[DonorInfo, Dict[str, Any], None]) -> DonorInfo:
    if isinstance(donor_info, DonorInfo):
        return donor_info
    return DonorInfo(**(donor_info or {}))


class DonationService:
    def __init__(self, db: AsyncSession, gateway: PaymentGatewayClient, notifier: NotificationService,
                 feed: Optional[ChangeFeed] = None):
        self.db = db
        self.store = OrderStateStore(db, feed)
        self.gateway = gateway
        self.notifier = notifier

    @staticmethod
    def _validate_input(amount_minor_units, donor: DonorInfo, is_anonymous: bool):
        """Input checks shared by every donation entry point; no external calls."""
        if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int):
            raise ValidationError("Donation amount must be a whole number of cents", code="invalid_amount")
        if amount_minor_units < MIN_DONATION_MINOR_UNITS:
            raise ValidationError("Minimum donation is €1", code="amount_too_small")

        email = (donor.email or "").strip()
        if not email:
            raise ValidationError("Email address is required", code="missing_email")
        if not re.match(EMAIL_PATTERN, email):
            raise ValidationError("Please enter a valid email address", code="invalid_email")

        if not is_anonymous and not (donor.name or "").strip():
            raise ValidationError("Please enter your name or donate anonymously", code="missing_name")

    async def _validate(self, campaign_id: str, amount_minor_units, donor: DonorInfo,
                        is_anonymous: bool) -> Campaign:
        """Checks made before any money moves; the campaign must be public."""
        self._validate_input(amount_minor_units, donor, is_anonymous)

        campaign = await self.store.get_campaign(campaign_id)
        if not campaign or not campaign.is_public:
            raise NotFoundError("Campaign not found or not accepting donations", code="campaign_not_found")
        return campaign

    # ---------- Start payment ----------
    async def initiate_donation(
            self,
            campaign_id: str,
            amount_minor_units: int,
            donor_info: Union[DonorInfo, Dict[str, Any], None],
            is_anonymous: bool = False,
    ) -> PaymentIntentResult:
        donor = _donor(donor_info)
        campaign = await self._validate(campaign_id, amount_minor_units, donor, is_anonymous)

        return await run_in_threadpool(
            self.gateway.create_payment_intent,
            amount_minor_units,
            campaign.id,
            donor.email.strip(),
            {"isAnonymous": str(bool(is_anonymous)).lower()},
        )

    # ---------- Record ----------
    async def finalize_donation(
            self,
            campaign_id: str,
            amount_minor_units: int,
            donor_info: Union[DonorInfo, Dict[str, Any], None],
            is_anonymous: bool,
            intent_id: str,
            background_tasks: Optional[BackgroundTasks] = None,
    ) -> DonationOutcome:
        """Record a captured payment once; repeats return the stored donation."""
        if not intent_id or not intent_id.strip():
            raise ValidationError("Payment intent id is required", code="missing_intent")

        donor = _donor(donor_info)
        self._validate_input(amount_minor_units, donor, is_anonymous)

        # the card is already charged; a campaign closed since then still gets the record
        campaign = await self.store.get_campaign(campaign_id)
        if not campaign:
            logger.error(f"Captured payment {intent_id} references unknown campaign {campaign_id}")
            raise PersistenceError(f"Campaign {campaign_id} not found for captured payment",
                                   reference=intent_id.strip())
        if not campaign.is_public:
            logger.warning(f"Recording donation {intent_id} for campaign {campaign.id}, which is no longer public")

        donation = Donation(
            id=intent_id.strip(),
            campaign_id=campaign.id,
            amount=amount_minor_units,
            donor_name=None if is_anonymous else donor.name.strip(),
            donor_email=donor.email.strip(),
            message=(donor.message or "").strip() or None,
            is_anonymous=bool(is_anonymous),
        )
        donation, created = await self.store.insert_donation(donation)

        if not created:
            logger.info(f"Donation {donation.id} already recorded, returning existing row")
        else:
            logger.info(f"Donation {donation.id} of {donation.amount} cents recorded for campaign {campaign.id}")
            if not donation.is_anonymous and donation.donor_email:
                await self.notifier.send_donation_receipt(donation, campaign, background_tasks)

        return DonationOutcome(donation=DonationRead.model_validate(donation), created=created)

    async def confirm_and_finalize(
            self,
            campaign_id: str,
            amount_minor_units: int,
            donor_info: Union[DonorInfo, Dict[str, Any], None],
            is_anonymous: bool,
            intent_id: str,
            payment_method_id: str,
            background_tasks: Optional[BackgroundTasks] = None,
    ) -> DonationOutcome:
        """Confirm on the server, then record. A recording failure after the charge raises PersistenceError."""
        donor = _donor(donor_info)
        await self._validate(campaign_id, amount_minor_units, donor, is_anonymous)

        await run_in_threadpool(self.gateway.confirm_payment_intent, intent_id, payment_method_id)
        return await self.finalize_donation(
            campaign_id, amount_minor_units, donor, is_anonymous, intent_id, background_tasks,
        )

    # ---------- Read ----------
    async def list_public_donations(self, campaign_id: str, offset: int = 0,
                                    limit: int = 50) -> Tuple[List[DonationPublic], int]:
        donations, total = await self.store.list_donations(campaign_id, offset=offset, limit=limit)
        return [self.to_public(donation) for donation in donations], total

    async def list_donations(self, campaign_id: Optional[str] = None, offset: int = 0,
                             limit: int = 50) -> Tuple[List[Donation], int]:
        return await self.store.list_donations(campaign_id, offset=offset, limit=limit)

    @staticmethod
    def to_public(donation: Donation) -> DonationPublic:
        return DonationPublic(
            id=donation.id,
            amount=donation.amount,
            donor_name=None if donation.is_anonymous else donation.donor_name,
            message=donation.message,
            is_anonymous=donation.is_anonymous,
            created_at=donation.created_at,
        )
