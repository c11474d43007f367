# app/api/v1/endpoints/payments.py
from typing import Optional

from fastapi import APIRouter, Depends, Request, Header, BackgroundTasks
from fastapi.concurrency import run_in_threadpool

from core.dependencies import get_payment_gateway, get_webhook_service
from core.exceptions import ValidationError
from services.payment_gateway import PaymentGatewayClient
from services.webhook_service import WebhookService
from schemas.payment import CreatePaymentIntentRequest, CreatePaymentIntentResponse, WebhookAck

router = APIRouter()


@router.post("/create-payment-intent", response_model=CreatePaymentIntentResponse, response_model_by_alias=True)
async def create_payment_intent(
        data: CreatePaymentIntentRequest,
        gateway: PaymentGatewayClient = Depends(get_payment_gateway)
):
    if data.currency.lower() != gateway.currency:
        raise ValidationError(f"Unsupported currency: {data.currency}", code="invalid_currency")

    intent = await run_in_threadpool(gateway.create_payment_intent, data.amount, data.campaign_id, data.donor_email)
    return CreatePaymentIntentResponse(
        client_secret=intent.client_secret,
        payment_intent_id=intent.intent_id,
        amount=intent.amount,
        currency=intent.currency,
    )


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
        request: Request,
        background_tasks: BackgroundTasks,
        stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
        gateway: PaymentGatewayClient = Depends(get_payment_gateway),
        service: WebhookService = Depends(get_webhook_service)
):
    payload = await request.body()
    event = gateway.construct_event(payload, stripe_signature)
    return await service.handle_event(event, background_tasks)
