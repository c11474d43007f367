# app/services/webhook_service.py
from typing import Optional, Dict, Any
import logging

from fastapi import BackgroundTasks

from models.pack_order import PackOrder
from schemas.payment import WebhookAck
from services.pack_order_service import PackOrderService

logger = logging.getLogger(__name__)


class WebhookService:
    """Reconciles Stripe events with pack orders. Deliveries may repeat."""

    def __init__(self, pack_orders: PackOrderService):
        self.pack_orders = pack_orders
        self.store = pack_orders.store
        self.handlers = {
            "checkout.session.completed": self._checkout_completed,
            "payment_intent.succeeded": self._payment_succeeded,
            "payment_intent.payment_failed": self._payment_failed,
        }

    async def handle_event(self, event: Dict[str, Any],
                           background_tasks: Optional[BackgroundTasks] = None) -> WebhookAck:
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled webhook event type: {event_type}")
            return WebhookAck(event_type=event_type, handled=False)

        handled = await handler(obj, background_tasks)
        return WebhookAck(event_type=event_type, handled=handled)

    async def _find_order(self, metadata: Dict[str, Any], intent_id: Optional[str] = None,
                          link_id: Optional[str] = None) -> Optional[PackOrder]:
        order_id = (metadata or {}).get("pack_order_id")
        if order_id:
            order = await self.store.get_pack_order(order_id)
            if order:
                return order
            logger.warning(f"Webhook references unknown pack order {order_id}")
        if intent_id:
            order = await self.store.find_pack_order_by_intent(intent_id)
            if order:
                return order
        if link_id:
            return await self.store.find_pack_order_by_link(link_id)
        return None

    async def _checkout_completed(self, session: Dict[str, Any], background_tasks) -> bool:
        intent_id = session.get("payment_intent")
        order = await self._find_order(session.get("metadata"), intent_id, session.get("payment_link"))
        if not order:
            logger.info(f"Checkout session {session.get('id')} is not for a pack order")
            return False

        await self.pack_orders.record_payment(order.id, intent_id or session.get("id"), background_tasks)
        return True

    async def _payment_succeeded(self, intent: Dict[str, Any], background_tasks) -> bool:
        order = await self._find_order(intent.get("metadata"), intent.get("id"))
        if not order:
            logger.info(f"Payment intent {intent.get('id')} is not for a pack order")
            return False

        await self.pack_orders.record_payment(order.id, intent.get("id"), background_tasks)
        return True

    async def _payment_failed(self, intent: Dict[str, Any], background_tasks) -> bool:
        order = await self._find_order(intent.get("metadata"), intent.get("id"))
        if not order:
            return False

        intent_id = intent.get("id")
        if order.stripe_payment_intent_id and intent_id != order.stripe_payment_intent_id:
            logger.info(f"Ignoring failure of superseded intent {intent_id} for pack order {order.id}")
            return False

        last_error = intent.get("last_payment_error") or {}
        await self.pack_orders.record_payment_failure(order.id, last_error.get("message"))
        return True
