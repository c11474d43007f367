"""
Shared fixtures: in-memory SQLite database, fake payment gateway and notifier
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from core.cache import clear_cache
from core.exceptions import GatewayError
from models.base import Base
from models.campaign import PaymentStatus
from schemas.payment import PaymentIntentResult, PaymentIntentStatus, PaymentLinkResult
from schemas.notification import NotificationResult
from services.notification_service import NotificationService
from services.order_store import OrderStateStore
from services.payment_gateway import PaymentGatewayClient
from services.realtime import ChangeFeed


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_template_cache():
    clear_cache()
    yield
    clear_cache()


# ============================================================================
# COLLABORATORS
# ============================================================================

@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def gateway():
    """Gateway double; Stripe itself is patched in test_payment_gateway.py"""
    gateway = MagicMock(spec=PaymentGatewayClient)
    gateway.currency = "eur"
    gateway.create_payment_intent.side_effect = lambda amount, ref, email=None, metadata=None: PaymentIntentResult(
        client_secret=f"pi_test_secret_{ref}",
        intent_id="pi_test_123",
        amount=amount,
        currency="eur",
    )
    gateway.create_payment_link.return_value = PaymentLinkResult(
        link_url="https://buy.stripe.com/test_link",
        link_id="plink_test_123",
    )
    gateway.confirm_payment_intent.return_value = {"id": "pi_test_123", "status": "succeeded", "amount": 2500}
    # unknown to Stripe until a test says otherwise
    gateway.retrieve_payment_intent.side_effect = GatewayError("No such payment_intent", code="resource_missing")
    return gateway


@pytest.fixture
def paid_intent(gateway):
    """Make Stripe report a succeeded payment for a pack order"""
    def _paid(order_id, amount, intent_id="pi_test_123", status="succeeded"):
        gateway.retrieve_payment_intent.side_effect = None
        gateway.retrieve_payment_intent.return_value = PaymentIntentStatus(
            intent_id=intent_id,
            status=status,
            amount=amount,
            currency="eur",
            metadata={"pack_order_id": order_id},
        )
        return intent_id
    return _paid


@pytest.fixture
def notifier():
    notifier = MagicMock(spec=NotificationService)
    for name in ("send_email", "send_donation_receipt", "send_campaign_approved",
                 "send_campaign_rejected", "send_pack_ordered", "send_pack_payment_link"):
        getattr(notifier, name).return_value = NotificationResult(success=True)
    return notifier


# ============================================================================
# DATA
# ============================================================================

CAMPAIGN_DEFAULTS = {
    "title": "Coffee for Kilkenny",
    "organizer": "Aoife Murphy",
    "email": "aoife@example.ie",
    "county": "Kilkenny",
    "eircode": "R95 X2Y3",
    "story": "A morning of coffee and cake for a good cause.",
    "goal_amount": 500,
    "event_date": "2026-11-14",
    "event_time": "10:00",
    "location": "Parish Hall, Kilkenny",
    "social_links": {},
}

SHIPPING_ADDRESS = {
    "name": "Aoife Murphy",
    "address_line_1": "1 Main Street",
    "city": "Kilkenny",
    "county": "Kilkenny",
    "eircode": "R95 X2Y3",
    "country": "Ireland",
}


async def create_campaign(db, feed=None, **overrides):
    values = dict(CAMPAIGN_DEFAULTS)
    values.update(overrides)
    return await OrderStateStore(db, feed or ChangeFeed()).create_campaign(values)


@pytest_asyncio.fixture
async def campaign(db, feed):
    """A new campaign: active, unapproved, pack unpaid"""
    return await create_campaign(db, feed)


@pytest_asyncio.fixture
async def live_campaign(db, feed):
    """A campaign visible to the public"""
    return await create_campaign(
        db, feed,
        is_approved=True,
        pack_payment_status=PaymentStatus.COMPLETED,
    )


@pytest.fixture
def make_campaign(db, feed):
    async def _make(**overrides):
        return await create_campaign(db, feed, **overrides)
    return _make


@pytest.fixture
def shipping_address():
    return dict(SHIPPING_ADDRESS)
