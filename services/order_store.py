# app/services/order_store.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, desc, asc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Dict, Tuple, Iterable
import logging

from core.exceptions import NotFoundError, PersistenceError
from models.campaign import Campaign, PaymentStatus
from models.pack_order import PackOrder
from models.donation import Donation
from services.realtime import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

CENTS = Decimal(100)
TWO_PLACES = Decimal("0.01")


def cents_to_amount(total_cents: Optional[int]) -> Decimal:
    return (Decimal(total_cents or 0) / CENTS).quantize(TWO_PLACES)


class OrderStateStore:
    """Persistence for campaigns, pack orders and donations.

    Every write commits before returning and publishes a change event
    afterwards. Driver errors surface as PersistenceError.
    """

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or change_feed

    async def _commit(self, reference: Optional[str] = None):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Commit failed ({reference}): {e}")
            raise PersistenceError(f"Database write failed: {e}", reference=reference)

    # ---------- Campaigns ----------
    async def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        return await self.db.get(Campaign, campaign_id)

    async def require_campaign(self, campaign_id: str) -> Campaign:
        campaign = await self.get_campaign(campaign_id)
        if not campaign:
            raise NotFoundError("Campaign not found", code="campaign_not_found")
        return campaign

    async def get_campaign_by_number(self, campaign_number: int) -> Optional[Campaign]:
        result = await self.db.execute(
            select(Campaign).where(Campaign.campaign_number == campaign_number)
        )
        return result.scalar_one_or_none()

    async def next_campaign_number(self) -> int:
        result = await self.db.execute(select(func.max(Campaign.campaign_number)))
        return (result.scalar() or 0) + 1

    async def create_campaign(self, values: dict, attempts: int = 3) -> Campaign:
        """Insert with the next sequential number; retried when two creations race."""
        for attempt in range(attempts):
            campaign = Campaign(campaign_number=await self.next_campaign_number(), **values)
            self.db.add(campaign)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(f"Campaign number collision, attempt {attempt + 1}")
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise PersistenceError(f"Database write failed: {e}")

            await self.db.refresh(campaign)
            self.feed.publish("campaigns", "insert", campaign.id)
            return campaign

        raise PersistenceError("Could not allocate a campaign number")

    async def update_campaign(self, campaign: Campaign, **values) -> Campaign:
        for field, value in values.items():
            setattr(campaign, field, value)
        await self._commit(campaign.id)
        await self.db.refresh(campaign)
        self.feed.publish("campaigns", "update", campaign.id)
        return campaign

    async def list_campaigns(
            self,
            public_only: bool = False,
            offset: int = 0,
            limit: int = 20,
    ) -> Tuple[List[Campaign], int]:
        query = select(Campaign)
        count_query = select(func.count()).select_from(Campaign)
        if public_only:
            condition = (Campaign.is_active.is_(True)) & (Campaign.is_approved.is_(True))
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(
            query.order_by(desc(Campaign.campaign_number)).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def raised_amount(self, campaign_id: str) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Donation.amount), 0)).where(Donation.campaign_id == campaign_id)
        )
        return cents_to_amount(result.scalar())

    async def raised_amounts(self, campaign_ids: Iterable[str]) -> Dict[str, Decimal]:
        ids = list(campaign_ids)
        totals = {campaign_id: cents_to_amount(0) for campaign_id in ids}
        if not ids:
            return totals

        result = await self.db.execute(
            select(Donation.campaign_id, func.sum(Donation.amount))
            .where(Donation.campaign_id.in_(ids))
            .group_by(Donation.campaign_id)
        )
        for campaign_id, total in result.all():
            totals[campaign_id] = cents_to_amount(total)
        return totals

    # ---------- Pack orders ----------
    async def get_pack_order(self, order_id: str) -> Optional[PackOrder]:
        return await self.db.get(PackOrder, order_id)

    async def require_pack_order(self, order_id: str) -> PackOrder:
        order = await self.get_pack_order(order_id)
        if not order:
            raise NotFoundError("Pack order not found", code="pack_order_not_found")
        return order

    async def find_pack_order_by_intent(self, intent_id: str) -> Optional[PackOrder]:
        result = await self.db.execute(
            select(PackOrder).where(PackOrder.stripe_payment_intent_id == intent_id)
        )
        return result.scalars().first()

    async def find_pack_order_by_link(self, link_id: str) -> Optional[PackOrder]:
        result = await self.db.execute(
            select(PackOrder).where(PackOrder.stripe_payment_link_id == link_id)
        )
        return result.scalars().first()

    async def find_open_pack_order(self, campaign_id: str) -> Optional[PackOrder]:
        """Latest order for a campaign that has not failed."""
        result = await self.db.execute(
            select(PackOrder)
            .where(PackOrder.campaign_id == campaign_id)
            .where(PackOrder.payment_status != PaymentStatus.FAILED)
            .order_by(PackOrder.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def create_pack_order(self, order: PackOrder) -> PackOrder:
        self.db.add(order)
        await self._commit(order.id)
        await self.db.refresh(order)
        self.feed.publish("pack_orders", "insert", order.id)
        return order

    async def update_pack_order(self, order: PackOrder, **values) -> PackOrder:
        for field, value in values.items():
            setattr(order, field, value)
        await self._commit(order.id)
        await self.db.refresh(order)
        self.feed.publish("pack_orders", "update", order.id)
        return order

    async def confirm_pack_payment(self, order: PackOrder, intent_id: str, paid_at: datetime) -> bool:
        """Mark an order paid unless it already is; the campaign follows in the same commit.

        Returns True only for the call that performed the transition.
        """
        try:
            result = await self.db.execute(
                update(PackOrder)
                .where(PackOrder.id == order.id)
                .where(PackOrder.payment_status != PaymentStatus.COMPLETED)
                .values(
                    payment_status=PaymentStatus.COMPLETED,
                    paid_at=paid_at,
                    stripe_payment_intent_id=intent_id,
                )
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount == 1
            if changed:
                await self.db.execute(
                    update(Campaign)
                    .where(Campaign.id == order.campaign_id)
                    .values(pack_payment_status=PaymentStatus.COMPLETED, pack_order_id=order.id)
                    .execution_options(synchronize_session=False)
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Pack order {order.id} confirmation not recorded: {e}")
            raise PersistenceError(f"Pack payment confirmation failed: {e}", reference=intent_id)

        await self.db.refresh(order)
        if changed:
            # reload a campaign already held by this session
            await self.db.get(Campaign, order.campaign_id, populate_existing=True)
            self.feed.publish("pack_orders", "update", order.id)
            self.feed.publish("campaigns", "update", order.campaign_id)
        return changed

    async def mark_pack_payment_failed(self, order: PackOrder) -> bool:
        """pending -> failed; completed orders are left alone."""
        try:
            result = await self.db.execute(
                update(PackOrder)
                .where(PackOrder.id == order.id)
                .where(PackOrder.payment_status == PaymentStatus.PENDING)
                .values(payment_status=PaymentStatus.FAILED)
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount == 1
            if changed:
                await self.db.execute(
                    update(Campaign)
                    .where(Campaign.id == order.campaign_id)
                    .where(Campaign.pack_payment_status != PaymentStatus.COMPLETED)
                    .values(pack_payment_status=PaymentStatus.FAILED)
                    .execution_options(synchronize_session=False)
                )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Could not record payment failure: {e}", reference=order.id)

        await self.db.refresh(order)
        if changed:
            # reload a campaign already held by this session
            await self.db.get(Campaign, order.campaign_id, populate_existing=True)
            self.feed.publish("pack_orders", "update", order.id)
            self.feed.publish("campaigns", "update", order.campaign_id)
        return changed

    async def list_pack_orders(self, status: Optional[PaymentStatus] = None, oldest_first: bool = False,
                               offset: int = 0, limit: int = 50) -> Tuple[List[PackOrder], int]:
        query = select(PackOrder)
        count_query = select(func.count()).select_from(PackOrder)
        if status is not None:
            query = query.where(PackOrder.payment_status == status)
            count_query = count_query.where(PackOrder.payment_status == status)

        order_by = asc(PackOrder.created_at) if oldest_first else desc(PackOrder.created_at)
        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(query.order_by(order_by).offset(offset).limit(limit))
        return list(result.scalars().all()), total

    # ---------- Donations ----------
    async def get_donation(self, donation_id: str) -> Optional[Donation]:
        return await self.db.get(Donation, donation_id)

    async def insert_donation(self, donation: Donation) -> Tuple[Donation, bool]:
        """Insert once per payment intent. A repeat returns the stored row and False."""
        existing = await self.get_donation(donation.id)
        if existing:
            return existing, False

        self.db.add(donation)
        try:
            await self.db.commit()
        except IntegrityError:
            # a concurrent insert for the same intent won
            await self.db.rollback()
            existing = await self.get_donation(donation.id)
            if existing:
                return existing, False
            raise PersistenceError("Donation could not be recorded", reference=donation.id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Donation {donation.id} not recorded: {e}")
            raise PersistenceError(f"Donation could not be recorded: {e}", reference=donation.id)

        await self.db.refresh(donation)
        self.feed.publish("donations", "insert", donation.id, {"campaign_id": donation.campaign_id})
        return donation, True

    async def list_donations(self, campaign_id: Optional[str] = None, offset: int = 0,
                             limit: int = 50) -> Tuple[List[Donation], int]:
        query = select(Donation)
        count_query = select(func.count()).select_from(Donation)
        if campaign_id:
            query = query.where(Donation.campaign_id == campaign_id)
            count_query = count_query.where(Donation.campaign_id == campaign_id)

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(
            query.order_by(desc(Donation.created_at)).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total
