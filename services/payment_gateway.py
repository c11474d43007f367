# app/services/payment_gateway.py
from typing import Optional, Dict, Any
import json
import logging

import stripe

from core.config import settings
from core.constants import CARD_ERROR_MESSAGES, DEFAULT_CARD_ERROR_MESSAGE
from core.exceptions import ConfigurationError, GatewayError, ValidationError
from schemas.payment import PaymentIntentResult, PaymentIntentStatus, PaymentLinkResult

logger = logging.getLogger(__name__)


def user_message_for(code: Optional[str]) -> str:
    """Card error code -> message safe to show a donor."""
    return CARD_ERROR_MESSAGES.get(code or "", DEFAULT_CARD_ERROR_MESSAGE)


def _validate_amount(amount_minor_units) -> int:
    # bool is an int subclass; floats would reach Stripe as 1050.0
    if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int):
        raise ValidationError("Amount must be a whole number of cents", code="invalid_amount")
    if amount_minor_units <= 0:
        raise ValidationError("Amount must be greater than zero", code="invalid_amount")
    return amount_minor_units


def _gateway_error(exc: "stripe.StripeError") -> GatewayError:
    code = getattr(exc, "code", None) or "processing_error"
    message = getattr(exc, "user_message", None) or str(exc)
    return GatewayError(message, code=code, user_message=user_message_for(code))


class PaymentGatewayClient:
    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None,
                 currency: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET
        self.currency = (currency or settings.CURRENCY).lower()

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured", code="stripe_not_configured")
        return self.api_key

    # ---------- Payment intents ----------
    def create_payment_intent(
            self,
            amount_minor_units: int,
            campaign_ref: str,
            donor_email: Optional[str] = None,
            metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentIntentResult:
        """Create a card payment intent for an exact amount in cents."""
        api_key = self._require_key()
        amount = _validate_amount(amount_minor_units)
        if not campaign_ref or not str(campaign_ref).strip():
            raise ValidationError("Campaign reference is required", code="missing_campaign")

        intent_metadata = {
            "campaignId": str(campaign_ref),
            "donorEmail": donor_email or "anonymous",
            "source": settings.PAYMENT_SOURCE,
        }
        if metadata:
            intent_metadata.update({k: str(v) for k, v in metadata.items()})

        params = {
            "amount": amount,
            "currency": self.currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": intent_metadata,
            "description": f"Coffee Morning Challenge - {campaign_ref}",
        }
        if donor_email and "@" in donor_email:
            params["receipt_email"] = donor_email

        try:
            intent = stripe.PaymentIntent.create(api_key=api_key, **params)
        except stripe.StripeError as e:
            logger.warning(f"Payment intent creation failed for {campaign_ref}: {e}")
            raise _gateway_error(e)

        intent_id = getattr(intent, "id", None)
        client_secret = getattr(intent, "client_secret", None)
        if not intent_id or not client_secret:
            raise GatewayError("Invalid response from payment processor", code="invalid_response",
                               user_message=DEFAULT_CARD_ERROR_MESSAGE)

        logger.info(f"Payment intent {intent_id} created for {campaign_ref} ({amount} {self.currency})")
        return PaymentIntentResult(
            client_secret=client_secret,
            intent_id=intent_id,
            amount=amount,
            currency=self.currency,
        )

    def confirm_payment_intent(self, intent_id: str, payment_method_id: str) -> Dict[str, Any]:
        """Confirm server-side. Never retried: a retry could charge twice."""
        api_key = self._require_key()
        if not intent_id or not payment_method_id:
            raise ValidationError("Payment intent and payment method are required")

        try:
            intent = stripe.PaymentIntent.confirm(
                intent_id,
                payment_method=payment_method_id,
                api_key=api_key,
                max_network_retries=0,
            )
        except stripe.StripeError as e:
            logger.warning(f"Payment intent {intent_id} confirmation failed: {e}")
            raise _gateway_error(e)

        intent_status = getattr(intent, "status", None)
        if intent_status != "succeeded":
            last_error = getattr(intent, "last_payment_error", None)
            code = getattr(last_error, "code", None) or "processing_error"
            raise GatewayError(f"Payment intent {intent_id} is {intent_status}", code=code,
                               user_message=user_message_for(code))
        return {"id": intent_id, "status": intent_status, "amount": getattr(intent, "amount", None)}

    def retrieve_payment_intent(self, intent_id: str) -> PaymentIntentStatus:
        """Current state of an intent as Stripe records it."""
        api_key = self._require_key()
        if not intent_id or not str(intent_id).strip():
            raise ValidationError("Payment intent id is required", code="missing_intent")

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=api_key)
        except stripe.StripeError as e:
            logger.warning(f"Payment intent {intent_id} lookup failed: {e}")
            raise _gateway_error(e)

        amount = getattr(intent, "amount", None)
        if not isinstance(amount, int):
            raise GatewayError("Invalid response from payment processor", code="invalid_response",
                               user_message=DEFAULT_CARD_ERROR_MESSAGE)

        metadata = getattr(intent, "metadata", None) or {}
        return PaymentIntentStatus(
            intent_id=getattr(intent, "id", None) or intent_id,
            status=getattr(intent, "status", None) or "unknown",
            amount=amount,
            currency=getattr(intent, "currency", None),
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
        )

    # ---------- Payment links ----------
    def create_payment_link(
            self,
            amount_minor_units: int,
            description: str,
            metadata: Dict[str, str],
            redirect_url: str,
    ) -> PaymentLinkResult:
        """Hosted payment page for one EUR line item."""
        api_key = self._require_key()
        amount = _validate_amount(amount_minor_units)
        link_metadata = {k: str(v) for k, v in (metadata or {}).items()}

        try:
            link = stripe.PaymentLink.create(
                api_key=api_key,
                line_items=[{
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": "Coffee Morning Challenge Pack",
                            "description": description,
                        },
                        "unit_amount": amount,
                    },
                    "quantity": 1,
                }],
                metadata=link_metadata,
                payment_intent_data={"metadata": link_metadata},
                after_completion={"type": "redirect", "redirect": {"url": redirect_url}},
                billing_address_collection="required",
                shipping_address_collection={"allowed_countries": ["IE"]},
            )
        except stripe.StripeError as e:
            logger.warning(f"Payment link creation failed: {e}")
            raise _gateway_error(e)

        link_id = getattr(link, "id", None)
        link_url = getattr(link, "url", None)
        if not link_id or not link_url:
            raise GatewayError("Invalid response from payment processor", code="invalid_response",
                               user_message=DEFAULT_CARD_ERROR_MESSAGE)

        logger.info(f"Payment link {link_id} created ({amount} {self.currency})")
        return PaymentLinkResult(link_url=link_url, link_id=link_id)

    # ---------- Webhooks ----------
    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify and parse a webhook body into a plain dict."""
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        if self.webhook_secret:
            if not signature:
                raise ValidationError("Missing Stripe-Signature header", code="invalid_signature")
            try:
                stripe.WebhookSignature.verify_header(payload, signature, self.webhook_secret)
            except stripe.SignatureVerificationError as e:
                logger.warning(f"Webhook signature verification failed: {e}")
                raise ValidationError("Invalid signature", code="invalid_signature")
        elif not settings.DEBUG:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET is not configured", code="webhook_not_configured")
        else:
            logger.warning("Processing webhook without signature verification")

        try:
            event = json.loads(payload)
        except ValueError:
            raise ValidationError("Invalid payload", code="invalid_payload")
        if not isinstance(event, dict) or "type" not in event:
            raise ValidationError("Invalid payload", code="invalid_payload")
        return event
