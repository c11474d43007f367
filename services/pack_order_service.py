# app/services/pack_order_service.py
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import BackgroundTasks
from fastapi.concurrency import run_in_threadpool
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Tuple, Union
import logging
import uuid

from core.config import settings
from core.constants import PACK_OPTIONS, GARMENT_SIZES, GARMENT_SLOT_KEYS, SHIPPING_REQUIRED_FIELDS
from core.exceptions import ValidationError, StateTransitionError, PersistenceError
from models.campaign import PaymentStatus
from models.pack_order import PackOrder, PackType
from schemas.pack_order import ShippingAddress, GarmentSizes, PackPaymentOutcome, PaymentLinkOutcome
from schemas.payment import PaymentIntentResult
from services.notification_service import NotificationService
from services.order_store import OrderStateStore
from services.payment_gateway import PaymentGatewayClient
from services.realtime import ChangeFeed

logger = logging.getLogger(__name__)


def _as_dict(value) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return dict(value)


class PackOrderService:
    def __init__(self, db: AsyncSession, gateway: PaymentGatewayClient, notifier: NotificationService,
                 feed: Optional[ChangeFeed] = None):
        self.db = db
        self.store = OrderStateStore(db, feed)
        self.gateway = gateway
        self.notifier = notifier

    # ---------- Create ----------
    async def create_order(
            self,
            campaign_id: str,
            pack_type: Union[PackType, str],
            shipping_address: Union[ShippingAddress, Dict[str, Any]],
            phone: str,
            garment_sizes: Union[GarmentSizes, Dict[str, Any], None] = None,
            user_id: Optional[str] = None,
    ) -> PackOrder:
        """Record a pending order for a campaign's starter pack."""
        campaign = await self.store.require_campaign(campaign_id)

        # one pack per campaign; only a failed order may be replaced
        if (campaign.pack_payment_status == PaymentStatus.COMPLETED
                or await self.store.find_open_pack_order(campaign.id)):
            raise StateTransitionError("This campaign already has a pack order", code="pack_already_ordered")

        try:
            pack_type = PackType(getattr(pack_type, "value", pack_type))
        except ValueError:
            raise ValidationError(f"Unknown pack type: {pack_type}", code="invalid_pack_type")

        address = _as_dict(shipping_address) or {}
        missing = [field for field in SHIPPING_REQUIRED_FIELDS if not str(address.get(field) or "").strip()]
        if missing:
            raise ValidationError(f"Missing shipping details: {', '.join(missing)}", code="invalid_address")

        if not phone or not phone.strip():
            raise ValidationError("Mobile number is required", code="missing_phone")

        sizes = self._validate_garment_sizes(pack_type, _as_dict(garment_sizes))

        order = PackOrder(
            id=str(uuid.uuid4()),
            campaign_id=campaign.id,
            user_id=user_id,
            pack_type=pack_type,
            amount=PACK_OPTIONS[pack_type.value]["price"],
            garment_sizes=sizes,
            shipping_address=address,
            mobile_number=phone.strip(),
            payment_status=PaymentStatus.PENDING,
        )
        order = await self.store.create_pack_order(order)
        logger.info(f"Pack order {order.id} ({pack_type.value}) created for campaign {campaign.id}")

        # back-reference only; the order itself is already stored
        try:
            await self.store.update_campaign(campaign, pack_order_id=order.id)
        except PersistenceError as e:
            logger.warning(f"Could not link pack order {order.id} to campaign {campaign.id}: {e.message}")

        return order

    @staticmethod
    def _validate_garment_sizes(pack_type: PackType, sizes: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
        slots = PACK_OPTIONS[pack_type.value]["garment_slots"]
        provided = {key: value for key, value in (sizes or {}).items() if value}

        if slots == 0:
            if provided:
                raise ValidationError("Garment sizes are only available with medium and large packs",
                                      code="invalid_garment_sizes")
            return None

        required = GARMENT_SLOT_KEYS[:slots]
        extra = [key for key in provided if key not in required]
        if extra:
            raise ValidationError(f"The {pack_type.value} pack includes {slots} garments",
                                  code="invalid_garment_sizes")

        missing = [key for key in required if key not in provided]
        if missing:
            raise ValidationError(f"Please choose a size for {', '.join(missing)}", code="invalid_garment_sizes")

        invalid = [key for key in required if provided[key] not in GARMENT_SIZES]
        if invalid:
            raise ValidationError(f"Sizes must be one of {', '.join(GARMENT_SIZES)}", code="invalid_garment_sizes")

        return {key: provided[key] for key in required}

    # ---------- Payment ----------
    async def initiate_payment(self, order_id: str) -> PaymentIntentResult:
        """Card payment for the postage; a failed order goes back to pending."""
        order = await self.store.require_pack_order(order_id)
        if order.payment_status == PaymentStatus.COMPLETED:
            raise StateTransitionError("This pack order has already been paid", code="already_paid")

        campaign = await self.store.get_campaign(order.campaign_id)
        intent = await run_in_threadpool(
            self.gateway.create_payment_intent,
            order.amount,
            f"pack-{order.id}",
            campaign.email if campaign else None,
            {"pack_order_id": order.id, "type": "pack_postage"},
        )

        values = {"stripe_payment_intent_id": intent.intent_id}
        if order.payment_status == PaymentStatus.FAILED:
            logger.info(f"Retrying payment for pack order {order.id}")
            values["payment_status"] = PaymentStatus.PENDING
            if campaign and campaign.pack_payment_status == PaymentStatus.FAILED:
                await self.store.update_campaign(campaign, pack_payment_status=PaymentStatus.PENDING)

        await self.store.update_pack_order(order, **values)
        return intent

    async def confirm_payment(self, order_id: str, intent_id: str,
                              background_tasks: Optional[BackgroundTasks] = None) -> PackPaymentOutcome:
        """Client-reported payment, checked with Stripe before the order is marked paid.

        Repeating the confirmation for the intent that paid the order is harmless.
        """
        if not intent_id:
            raise ValidationError("Payment intent id is required", code="missing_intent")

        order = await self.store.require_pack_order(order_id)
        if order.payment_status == PaymentStatus.COMPLETED:
            if order.stripe_payment_intent_id != intent_id:
                raise ValidationError("Payment does not match this pack order", code="payment_mismatch")
        else:
            await self._verify_intent(order, intent_id)

        return await self.record_payment(order.id, intent_id, background_tasks)

    async def _verify_intent(self, order: PackOrder, intent_id: str):
        intent = await run_in_threadpool(self.gateway.retrieve_payment_intent, intent_id)
        if intent.status != "succeeded":
            raise ValidationError(f"Payment {intent_id} has not completed", code="payment_incomplete")
        if intent.metadata.get("pack_order_id") != order.id or intent.amount != order.amount:
            logger.warning(f"Intent {intent_id} ({intent.amount} cents, order "
                           f"{intent.metadata.get('pack_order_id')}) does not pay pack order {order.id}")
            raise ValidationError("Payment does not match this pack order", code="payment_mismatch")

    async def record_payment(self, order_id: str, intent_id: str,
                             background_tasks: Optional[BackgroundTasks] = None) -> PackPaymentOutcome:
        """Mark paid from an already verified source. Safe to call any number of times."""
        order = await self.store.require_pack_order(order_id)
        changed = await self.store.confirm_pack_payment(order, intent_id, datetime.now(timezone.utc))

        if changed:
            logger.info(f"Pack order {order.id} paid ({intent_id})")
            campaign = await self.store.get_campaign(order.campaign_id)
            if campaign:
                await self.notifier.send_pack_ordered(order, campaign, background_tasks)
        else:
            logger.info(f"Pack order {order.id} already paid, ignoring repeat confirmation")

        return PackPaymentOutcome(
            order_id=order.id,
            campaign_id=order.campaign_id,
            changed=changed,
            payment_status=order.payment_status.value,
            paid_at=order.paid_at,
        )

    async def record_payment_failure(self, order_id: str, reason: Optional[str] = None) -> PackOrder:
        order = await self.store.require_pack_order(order_id)
        if await self.store.mark_pack_payment_failed(order):
            logger.warning(f"Pack order {order.id} payment failed: {reason or 'no reason given'}")
        return order

    async def send_payment_link(
            self,
            order_id: str,
            organizer_email: Optional[str] = None,
            send_email: bool = True,
            campaign_title: Optional[str] = None,
            organizer_name: Optional[str] = None,
    ) -> PaymentLinkOutcome:
        """Hosted payment page for an unpaid order, optionally emailed to the organizer."""
        order = await self.store.require_pack_order(order_id)
        if order.payment_status == PaymentStatus.COMPLETED:
            raise StateTransitionError("This pack order has already been paid", code="already_paid")

        campaign = await self.store.require_campaign(order.campaign_id)
        title = campaign_title or campaign.title
        name = organizer_name or campaign.organizer
        email = organizer_email or campaign.email
        pack = PACK_OPTIONS[order.pack_type.value]

        link = await run_in_threadpool(
            self.gateway.create_payment_link,
            order.amount,
            f"{pack['name']} postage for {title}",
            {
                "pack_order_id": order.id,
                "campaign_title": title,
                "organizer_name": name,
                "type": "pack_postage",
            },
            f"{settings.SITE_URL.rstrip('/')}?pack_payment=success&order_id={order.id}",
        )
        await self.store.update_pack_order(order, stripe_payment_link_id=link.link_id)

        email_result = None
        if send_email and email:
            email_result = await self.notifier.send_pack_payment_link(email, order, name, title, link.link_url)

        return PaymentLinkOutcome(
            link_url=link.link_url,
            link_id=link.link_id,
            email=email_result.model_dump() if email_result else None,
        )

    # ---------- Fulfilment ----------
    async def set_tracking_number(self, order_id: str, tracking_number: str) -> PackOrder:
        if not tracking_number or not tracking_number.strip():
            raise ValidationError("Tracking number is required", code="missing_tracking_number")
        order = await self.store.require_pack_order(order_id)
        return await self.store.update_pack_order(order, tracking_number=tracking_number.strip())

    async def list_outstanding(self, offset: int = 0, limit: int = 50) -> Tuple[List[PackOrder], int]:
        """Unpaid orders, oldest first."""
        return await self.store.list_pack_orders(PaymentStatus.PENDING, oldest_first=True,
                                                 offset=offset, limit=limit)

    async def list_orders(self, status: Optional[PaymentStatus] = None, offset: int = 0,
                          limit: int = 50) -> Tuple[List[PackOrder], int]:
        return await self.store.list_pack_orders(status, offset=offset, limit=limit)
