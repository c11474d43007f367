"""
Admin approval operations against the store
"""
import pytest

from core.config import settings
from core.exceptions import AwaitingPaymentError, StateTransitionError
from models.campaign import PaymentStatus
from services.approval_service import ApprovalService
from services.pack_order_service import PackOrderService


@pytest.fixture
def approvals(db, notifier, feed):
    return ApprovalService(db, notifier, feed)


@pytest.fixture
def pack_orders(db, gateway, notifier, feed):
    return PackOrderService(db, gateway, notifier, feed)


class TestApproval:

    @pytest.mark.asyncio
    async def test_unpaid_pack_blocks_approval(self, approvals, pack_orders, campaign, shipping_address, notifier,
                                               paid_intent):
        """Order a pack, skip payment, approve: refused. Pay, approve: live."""
        order = await pack_orders.create_order(campaign.id, "free", shipping_address, "0871234567")

        with pytest.raises(AwaitingPaymentError):
            await approvals.approve(campaign.id)
        assert (await approvals.get_state(campaign.id)).state == "pending_payment"
        notifier.send_campaign_approved.assert_not_called()

        paid_intent(order.id, order.amount, "pi_pack")
        await pack_orders.confirm_payment(order.id, "pi_pack")
        assert (await approvals.get_state(campaign.id)).state == "awaiting_approval"

        approved = await approvals.approve(campaign.id)
        assert approved.is_approved is True
        assert approved.approved_at is not None
        assert (await approvals.get_state(campaign.id)).state == "live"
        notifier.send_campaign_approved.assert_called_once()

    @pytest.mark.asyncio
    async def test_completed_flag_without_paid_order(self, approvals, make_campaign):
        """The order itself is re-checked, not only the campaign flag"""
        campaign = await make_campaign(pack_payment_status=PaymentStatus.COMPLETED)
        with pytest.raises(AwaitingPaymentError):
            await approvals.approve(campaign.id)

    @pytest.mark.asyncio
    async def test_reject_is_silent_by_default(self, approvals, campaign, notifier, monkeypatch):
        monkeypatch.setattr(settings, "NOTIFY_ON_REJECTION", False)
        await _mark_paid(approvals, campaign)

        rejected = await approvals.reject(campaign.id, "Duplicate registration")
        assert rejected.is_active is False
        assert rejected.is_approved is False
        assert rejected.rejected_at is not None
        assert (await approvals.get_state(campaign.id)).state == "rejected"
        notifier.send_campaign_rejected.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_can_notify(self, approvals, campaign, notifier, monkeypatch):
        monkeypatch.setattr(settings, "NOTIFY_ON_REJECTION", True)
        await _mark_paid(approvals, campaign)

        await approvals.reject(campaign.id, "Duplicate registration")
        notifier.send_campaign_rejected.assert_called_once()

    @pytest.mark.asyncio
    async def test_deactivate_live_campaign(self, approvals, live_campaign):
        campaign = await approvals.deactivate(live_campaign.id)
        assert campaign.is_active is False
        assert (await approvals.get_state(campaign.id)).state == "inactive"

        with pytest.raises(StateTransitionError):
            await approvals.approve(campaign.id)

    @pytest.mark.asyncio
    async def test_no_reactivation_after_rejection(self, approvals, campaign):
        await _mark_paid(approvals, campaign)
        await approvals.reject(campaign.id)

        with pytest.raises(StateTransitionError):
            await approvals.deactivate(campaign.id)


async def _mark_paid(approvals, campaign):
    await approvals.store.update_campaign(campaign, pack_payment_status=PaymentStatus.COMPLETED)
