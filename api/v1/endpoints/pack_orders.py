# app/api/v1/endpoints/pack_orders.py
from fastapi import APIRouter, Depends, BackgroundTasks

from core.dependencies import get_pack_order_service
from services.pack_order_service import PackOrderService
from schemas.pack_order import (
    PackOrderCreate, PackOrderRead, PaymentConfirm, PaymentFailure, PackPaymentOutcome
)
from schemas.payment import PaymentIntentResult

router = APIRouter()


@router.post("", response_model=PackOrderRead, status_code=201)
async def create_pack_order(
        order_data: PackOrderCreate,
        service: PackOrderService = Depends(get_pack_order_service)
):
    return await service.create_order(
        campaign_id=order_data.campaign_id,
        pack_type=order_data.pack_type,
        shipping_address=order_data.shipping_address,
        phone=order_data.mobile_number,
        garment_sizes=order_data.garment_sizes,
        user_id=order_data.user_id,
    )


@router.post("/{order_id}/payment-intent", response_model=PaymentIntentResult)
async def create_pack_payment_intent(
        order_id: str,
        service: PackOrderService = Depends(get_pack_order_service)
):
    return await service.initiate_payment(order_id)


@router.post("/{order_id}/confirm", response_model=PackPaymentOutcome)
async def confirm_pack_payment(
        order_id: str,
        data: PaymentConfirm,
        background_tasks: BackgroundTasks,
        service: PackOrderService = Depends(get_pack_order_service)
):
    """Called by the client after the card payment succeeds. The intent is checked with Stripe; repeats are harmless"""
    return await service.confirm_payment(order_id, data.payment_intent_id, background_tasks)


@router.post("/{order_id}/failure", response_model=PackOrderRead)
async def record_pack_payment_failure(
        order_id: str,
        data: PaymentFailure,
        service: PackOrderService = Depends(get_pack_order_service)
):
    return await service.record_payment_failure(order_id, data.reason)
