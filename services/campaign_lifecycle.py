# app/services/campaign_lifecycle.py
"""
Campaign approval lifecycle.

Pure functions: the state is derived from the stored flags and every
transition is checked against the linked pack order. Nothing here touches
the database.
"""
from enum import Enum
from typing import Optional

from core.exceptions import AwaitingPaymentError, StateTransitionError
from models.campaign import PaymentStatus


class CampaignState(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    AWAITING_APPROVAL = "awaiting_approval"
    LIVE = "live"
    REJECTED = "rejected"
    INACTIVE = "inactive"


class CampaignEvent(str, Enum):
    PACK_PAYMENT_COMPLETED = "pack_payment_completed"
    APPROVE = "approve"
    REJECT = "reject"
    DEACTIVATE = "deactivate"


TRANSITIONS = {
    (CampaignState.PENDING_PAYMENT, CampaignEvent.PACK_PAYMENT_COMPLETED): CampaignState.AWAITING_APPROVAL,
    (CampaignState.AWAITING_APPROVAL, CampaignEvent.APPROVE): CampaignState.LIVE,
    (CampaignState.AWAITING_APPROVAL, CampaignEvent.REJECT): CampaignState.REJECTED,
    (CampaignState.LIVE, CampaignEvent.DEACTIVATE): CampaignState.INACTIVE,
    (CampaignState.AWAITING_APPROVAL, CampaignEvent.DEACTIVATE): CampaignState.INACTIVE,
}

# events that require the pack order to be paid
PAYMENT_GUARDED = {CampaignEvent.PACK_PAYMENT_COMPLETED, CampaignEvent.APPROVE}


def _status_value(status) -> Optional[str]:
    return status.value if isinstance(status, Enum) else status


def derive_state(campaign) -> CampaignState:
    if not campaign.is_active:
        if campaign.rejected_at is not None:
            return CampaignState.REJECTED
        return CampaignState.INACTIVE
    if campaign.is_approved:
        return CampaignState.LIVE
    if _status_value(campaign.pack_payment_status) == PaymentStatus.COMPLETED.value:
        return CampaignState.AWAITING_APPROVAL
    return CampaignState.PENDING_PAYMENT


def pack_order_paid(pack_order) -> bool:
    return pack_order is not None and _status_value(pack_order.payment_status) == PaymentStatus.COMPLETED.value


def transition(state: CampaignState, event: CampaignEvent, pack_order=None) -> CampaignState:
    """Next state for `event`, or raise when the move is not allowed."""
    state = CampaignState(state)
    event = CampaignEvent(event)

    if event in PAYMENT_GUARDED:
        if event == CampaignEvent.APPROVE and state == CampaignState.PENDING_PAYMENT:
            raise AwaitingPaymentError()
        if (state, event) in TRANSITIONS and not pack_order_paid(pack_order):
            raise AwaitingPaymentError()

    next_state = TRANSITIONS.get((state, event))
    if next_state is None:
        raise StateTransitionError(
            f"Cannot {event.value} a campaign that is {state.value}",
            code="invalid_transition",
        )
    return next_state
