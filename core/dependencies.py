from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from services.approval_service import ApprovalService
from services.campaign_service import CampaignService
from services.donation_service import DonationService
from services.notification_service import NotificationService
from services.pack_order_service import PackOrderService
from services.payment_gateway import PaymentGatewayClient
from services.realtime import ChangeFeed, change_feed
from services.webhook_service import WebhookService


def get_payment_gateway() -> PaymentGatewayClient:
    return PaymentGatewayClient()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_change_feed() -> ChangeFeed:
    return change_feed


def get_campaign_service(
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
) -> CampaignService:
    return CampaignService(db, feed)


def get_pack_order_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGatewayClient = Depends(get_payment_gateway),
    notifier: NotificationService = Depends(get_notification_service),
    feed: ChangeFeed = Depends(get_change_feed),
) -> PackOrderService:
    return PackOrderService(db, gateway, notifier, feed)


def get_donation_service(
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGatewayClient = Depends(get_payment_gateway),
    notifier: NotificationService = Depends(get_notification_service),
    feed: ChangeFeed = Depends(get_change_feed),
) -> DonationService:
    return DonationService(db, gateway, notifier, feed)


def get_approval_service(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ApprovalService:
    return ApprovalService(db, notifier, feed)


def get_webhook_service(
    pack_orders: PackOrderService = Depends(get_pack_order_service),
) -> WebhookService:
    return WebhookService(pack_orders)
