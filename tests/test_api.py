"""
HTTP API tests through the ASGI app with test doubles for Stripe and email
"""
import json

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from core.config import settings
from core.database import get_db
from core.dependencies import get_change_feed, get_notification_service, get_payment_gateway
from core.exceptions import GatewayError
from core.security import create_access_token
from main import app
from services.payment_gateway import PaymentGatewayClient

API = "/api/v1"

CAMPAIGN_BODY = {
    "title": "Coffee for Galway",
    "organizer": "Róisín Byrne",
    "email": "roisin@example.ie",
    "county": "Galway",
    "eircode": "H91 AB12",
    "story": "Tea, coffee and scones in aid of local youth services.",
    "goal_amount": 750,
    "event_date": "2026-11-21",
    "event_time": "10:30",
    "location": "Community Centre, Galway",
}


# ============================================================================
# FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def client(db, gateway, notifier, feed):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_change_feed] = lambda: feed

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token("admin@example.ie", {"role": "admin", "full_name": "Admin"})
    return {"Authorization": f"Bearer {token}"}


async def create_campaign_with_pack(client):
    campaign = (await client.post(f"{API}/campaigns", json=CAMPAIGN_BODY)).json()
    order = (await client.post(f"{API}/pack-orders", json={
        "campaign_id": campaign["id"],
        "pack_type": "medium",
        "shipping_address": {
            "name": "Róisín Byrne",
            "address_line_1": "5 Shop Street",
            "city": "Galway",
            "county": "Galway",
            "eircode": "H91 AB12",
            "country": "Ireland",
        },
        "mobile_number": "0861234567",
        "garment_sizes": {"shirt_1": "S", "shirt_2": "M"},
    })).json()
    return campaign, order


# ============================================================================
# HEALTH
# ============================================================================

@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ============================================================================
# CAMPAIGN -> PACK -> APPROVAL -> DONATION
# ============================================================================

class TestFullFlow:

    @pytest.mark.asyncio
    async def test_campaign_goes_live_and_takes_donations(self, client, admin_headers, paid_intent):
        campaign, order = await create_campaign_with_pack(client)
        assert campaign["campaign_number"] == 1
        assert campaign["pack_payment_status"] == "pending"
        assert order["amount"] == 3500

        # hidden until approved
        assert (await client.get(f"{API}/campaigns/1")).status_code == 404

        # approval is blocked until the pack is paid
        response = await client.post(f"{API}/admin/campaigns/{campaign['id']}/approve", headers=admin_headers)
        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "Campaign is awaiting payment",
            "code": "awaiting_payment",
            "retryable": False,
        }

        intent = (await client.post(f"{API}/pack-orders/{order['id']}/payment-intent")).json()
        assert intent["amount"] == 3500
        paid_intent(order["id"], order["amount"], intent["intent_id"])

        confirm = await client.post(f"{API}/pack-orders/{order['id']}/confirm",
                                    json={"payment_intent_id": intent["intent_id"]})
        assert confirm.json()["changed"] is True
        replay = await client.post(f"{API}/pack-orders/{order['id']}/confirm",
                                   json={"payment_intent_id": intent["intent_id"]})
        assert replay.json()["changed"] is False

        state = await client.get(f"{API}/admin/campaigns/{campaign['id']}/state", headers=admin_headers)
        assert state.json()["state"] == "awaiting_approval"

        response = await client.post(f"{API}/admin/campaigns/{campaign['id']}/approve", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["is_approved"] is True

        donation = await client.post(f"{API}/donations", json={
            "campaign_id": campaign["id"],
            "amount": 2500,
            "donor": {"name": "Pádraig", "email": "padraig@example.ie"},
            "payment_intent_id": "pi_donation_1",
        })
        assert donation.status_code == 200
        assert donation.json()["created"] is True

        public = (await client.get(f"{API}/campaigns/1")).json()
        assert public["raised_amount"] == "25.00"

        listing = (await client.get(f"{API}/campaigns")).json()
        assert listing["total"] == 1

    @pytest.mark.asyncio
    async def test_confirm_with_unknown_intent_is_refused(self, client, admin_headers):
        campaign, order = await create_campaign_with_pack(client)

        response = await client.post(f"{API}/pack-orders/{order['id']}/confirm",
                                     json={"payment_intent_id": "pi_made_up"})
        assert response.status_code == 402

        state = await client.get(f"{API}/admin/campaigns/{campaign['id']}/state", headers=admin_headers)
        assert state.json()["state"] == "pending_payment"


# ============================================================================
# PAYMENTS
# ============================================================================

class TestPayments:

    @pytest.mark.asyncio
    async def test_create_payment_intent_camel_case(self, client, gateway):
        response = await client.post(f"{API}/payments/create-payment-intent", json={
            "amount": 1050, "currency": "eur", "campaignId": "c-1", "donorEmail": "a@example.ie",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["clientSecret"] == "pi_test_secret_c-1"
        assert body["paymentIntentId"] == "pi_test_123"
        assert body["amount"] == 1050
        gateway.create_payment_intent.assert_called_once_with(1050, "c-1", "a@example.ie")

    @pytest.mark.asyncio
    async def test_gateway_error_is_402(self, client, gateway):
        gateway.create_payment_intent.side_effect = GatewayError(
            "declined", code="card_declined", user_message="Your card was declined. Please try a different payment method.",
        )
        response = await client.post(f"{API}/payments/create-payment-intent", json={
            "amount": 1050, "currency": "eur", "campaignId": "c-1",
        })

        assert response.status_code == 402
        assert response.json()["code"] == "card_declined"
        assert response.json()["retryable"] is True

    @pytest.mark.asyncio
    async def test_request_validation_is_400(self, client):
        response = await client.post(f"{API}/payments/create-payment-intent", json={"currency": "eur"})
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_webhook_without_secret_is_503(self, client, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", False)
        app.dependency_overrides[get_payment_gateway] = lambda: PaymentGatewayClient(
            api_key="sk_test", webhook_secret="",
        )
        response = await client.post(f"{API}/payments/webhook", content=json.dumps({"type": "x"}))

        assert response.status_code == 503
        assert response.json()["error"] == "Service unavailable. Please try again later."

    @pytest.mark.asyncio
    async def test_webhook_marks_pack_paid(self, client, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)
        app.dependency_overrides[get_payment_gateway] = lambda: PaymentGatewayClient(
            api_key="sk_test", webhook_secret="",
        )
        campaign, order = await create_campaign_with_pack(client)

        response = await client.post(f"{API}/payments/webhook", content=json.dumps({
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "payment_intent": "pi_x",
                                "metadata": {"pack_order_id": order["id"]}}},
        }))

        assert response.status_code == 200
        assert response.json()["handled"] is True


# ============================================================================
# DONATIONS
# ============================================================================

class TestDonations:

    @pytest.mark.asyncio
    async def test_minimum_amount(self, client):
        response = await client.post(f"{API}/donations/intent", json={
            "campaign_id": "c-1", "amount": 50, "donor": {"name": "A", "email": "a@example.ie"},
        })
        assert response.status_code == 400
        assert response.json()["code"] == "amount_too_small"

    @pytest.mark.asyncio
    async def test_anonymous_donor_hidden(self, client, live_campaign):
        await client.post(f"{API}/donations", json={
            "campaign_id": live_campaign.id,
            "amount": 1000,
            "donor": {"name": "Hidden Name", "email": "hidden@example.ie"},
            "is_anonymous": True,
            "payment_intent_id": "pi_anon",
        })

        response = await client.get(f"{API}/campaigns/{live_campaign.id}/donations")
        item = response.json()["items"][0]
        assert item["donor_name"] is None
        assert "Hidden Name" not in response.text
        assert "hidden@example.ie" not in response.text


# ============================================================================
# ADMIN
# ============================================================================

class TestAdmin:

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.get(f"{API}/admin/campaigns")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_payment_link(self, client, admin_headers):
        _, order = await create_campaign_with_pack(client)

        response = await client.post(f"{API}/admin/pack-orders/{order['id']}/payment-link",
                                     json={"sendEmail": False}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "paymentLink": "https://buy.stripe.com/test_link",
            "paymentLinkId": "plink_test_123",
        }

    @pytest.mark.asyncio
    async def test_outstanding_and_tracking(self, client, admin_headers):
        _, order = await create_campaign_with_pack(client)

        outstanding = (await client.get(f"{API}/admin/pack-orders/outstanding", headers=admin_headers)).json()
        assert [item["id"] for item in outstanding["items"]] == [order["id"]]

        response = await client.patch(f"{API}/admin/pack-orders/{order['id']}/tracking",
                                      json={"tracking_number": "AN1IE"}, headers=admin_headers)
        assert response.json()["tracking_number"] == "AN1IE"

    @pytest.mark.asyncio
    async def test_session_refresh(self, client, admin_headers):
        response = await client.post(f"{API}/admin/session/refresh", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
