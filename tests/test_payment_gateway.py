"""
Unit tests for the Stripe gateway client
"""
import hashlib
import hmac
import json
import time

import pytest
import stripe
from unittest.mock import MagicMock, patch

from core.config import settings
from core.exceptions import ConfigurationError, GatewayError, ValidationError
from services.payment_gateway import PaymentGatewayClient, user_message_for


def stripe_signature(payload: str, secret: str) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def client():
    return PaymentGatewayClient(api_key="sk_test_123", webhook_secret="whsec_test")


# ============================================================================
# PAYMENT INTENTS
# ============================================================================

class TestCreatePaymentIntent:

    def test_sends_exact_minor_units(self, client):
        """€10.50 goes to Stripe as the integer 1050"""
        with patch("stripe.PaymentIntent.create") as create:
            create.return_value = MagicMock(id="pi_123", client_secret="pi_123_secret")
            result = client.create_payment_intent(1050, "campaign-1", "donor@example.ie")

        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 1050
        assert type(kwargs["amount"]) is int
        assert kwargs["currency"] == "eur"
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["automatic_payment_methods"] == {"enabled": True}
        assert kwargs["receipt_email"] == "donor@example.ie"
        assert kwargs["metadata"]["campaignId"] == "campaign-1"
        assert kwargs["metadata"]["donorEmail"] == "donor@example.ie"
        assert kwargs["metadata"]["source"] == settings.PAYMENT_SOURCE

        assert result.intent_id == "pi_123"
        assert result.client_secret == "pi_123_secret"
        assert result.amount == 1050

    def test_anonymous_metadata_and_no_receipt(self, client):
        with patch("stripe.PaymentIntent.create") as create:
            create.return_value = MagicMock(id="pi_123", client_secret="secret")
            client.create_payment_intent(500, "pack-abc", metadata={"pack_order_id": "abc"})

        kwargs = create.call_args.kwargs
        assert kwargs["metadata"]["donorEmail"] == "anonymous"
        assert kwargs["metadata"]["pack_order_id"] == "abc"
        assert "receipt_email" not in kwargs

    @pytest.mark.parametrize("amount", [10.5, 1050.0, True, 0, -100, "1050"])
    def test_rejects_non_integer_or_non_positive_amounts(self, client, amount):
        with patch("stripe.PaymentIntent.create") as create:
            with pytest.raises(ValidationError):
                client.create_payment_intent(amount, "campaign-1")
        create.assert_not_called()

    def test_rejects_blank_campaign_ref(self, client):
        with pytest.raises(ValidationError):
            client.create_payment_intent(1000, "  ")

    def test_missing_key_is_configuration_error(self, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", None)
        with pytest.raises(ConfigurationError):
            PaymentGatewayClient().create_payment_intent(1000, "campaign-1")

    def test_card_error_is_translated(self, client):
        error = stripe.CardError("Your card was declined.", None, "card_declined")
        with patch("stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(GatewayError) as exc_info:
                client.create_payment_intent(1000, "campaign-1")

        assert exc_info.value.code == "card_declined"
        assert exc_info.value.retryable is True
        assert "declined" in exc_info.value.user_message()

    def test_response_without_secret_is_gateway_error(self, client):
        with patch("stripe.PaymentIntent.create") as create:
            create.return_value = MagicMock(id="pi_123", client_secret=None)
            with pytest.raises(GatewayError):
                client.create_payment_intent(1000, "campaign-1")


class TestConfirmPaymentIntent:

    def test_confirm_without_retries(self, client):
        with patch("stripe.PaymentIntent.confirm") as confirm:
            confirm.return_value = MagicMock(status="succeeded", amount=2500)
            result = client.confirm_payment_intent("pi_123", "pm_card_visa")

        assert confirm.call_args.kwargs["max_network_retries"] == 0
        assert result["status"] == "succeeded"

    def test_requires_action_is_gateway_error(self, client):
        with patch("stripe.PaymentIntent.confirm") as confirm:
            confirm.return_value = MagicMock(status="requires_payment_method",
                                             last_payment_error=MagicMock(code="expired_card"))
            with pytest.raises(GatewayError) as exc_info:
                client.confirm_payment_intent("pi_123", "pm_card_visa")

        assert exc_info.value.code == "expired_card"


class TestRetrievePaymentIntent:

    def test_reports_status_amount_and_metadata(self, client):
        with patch("stripe.PaymentIntent.retrieve") as retrieve:
            retrieve.return_value = MagicMock(id="pi_123", status="succeeded", amount=3500, currency="eur",
                                              metadata={"pack_order_id": "order-1"})
            intent = client.retrieve_payment_intent("pi_123")

        assert retrieve.call_args.args == ("pi_123",)
        assert retrieve.call_args.kwargs["api_key"] == "sk_test_123"
        assert intent.status == "succeeded"
        assert intent.amount == 3500
        assert intent.metadata == {"pack_order_id": "order-1"}

    def test_unknown_intent_is_gateway_error(self, client):
        error = stripe.InvalidRequestError("No such payment_intent: 'pi_made_up'", "intent",
                                           code="resource_missing")
        with patch("stripe.PaymentIntent.retrieve", side_effect=error):
            with pytest.raises(GatewayError) as exc_info:
                client.retrieve_payment_intent("pi_made_up")

        assert exc_info.value.code == "resource_missing"


# ============================================================================
# PAYMENT LINKS
# ============================================================================

class TestCreatePaymentLink:

    def test_single_eur_line_item(self, client):
        with patch("stripe.PaymentLink.create") as create:
            create.return_value = MagicMock(id="plink_1", url="https://buy.stripe.com/x")
            result = client.create_payment_link(
                1000, "Free Starter Pack", {"pack_order_id": "abc"}, "https://coffee.yspi.ie?x=1",
            )

        kwargs = create.call_args.kwargs
        line_item = kwargs["line_items"][0]
        assert line_item["price_data"]["unit_amount"] == 1000
        assert line_item["price_data"]["currency"] == "eur"
        assert line_item["quantity"] == 1
        assert kwargs["metadata"] == {"pack_order_id": "abc"}
        assert kwargs["payment_intent_data"]["metadata"] == {"pack_order_id": "abc"}
        assert kwargs["after_completion"]["redirect"]["url"] == "https://coffee.yspi.ie?x=1"
        assert kwargs["shipping_address_collection"] == {"allowed_countries": ["IE"]}
        assert result.link_id == "plink_1"
        assert result.link_url == "https://buy.stripe.com/x"


# ============================================================================
# WEBHOOKS
# ============================================================================

class TestConstructEvent:

    def test_valid_signature(self, client):
        payload = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {}}})
        event = client.construct_event(payload.encode(), stripe_signature(payload, "whsec_test"))
        assert event["type"] == "payment_intent.succeeded"

    def test_bad_signature(self, client):
        payload = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded"})
        with pytest.raises(ValidationError):
            client.construct_event(payload.encode(), stripe_signature(payload, "whsec_other"))

    def test_missing_signature(self, client):
        with pytest.raises(ValidationError):
            client.construct_event(b'{"type": "x"}', None)

    def test_unsigned_rejected_outside_debug(self, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", False)
        client = PaymentGatewayClient(api_key="sk_test", webhook_secret="")
        with pytest.raises(ConfigurationError):
            client.construct_event(b'{"type": "x"}', None)

    def test_unsigned_accepted_in_debug(self, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        client = PaymentGatewayClient(api_key="sk_test", webhook_secret="")
        assert client.construct_event(b'{"type": "x"}', None) == {"type": "x"}


def test_user_messages():
    assert "expired" in user_message_for("expired_card")
    assert "security code" in user_message_for("incorrect_cvc")
    assert user_message_for("something_new") == "Payment failed. Please try again."
    assert user_message_for(None) == "Payment failed. Please try again."
