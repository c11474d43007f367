# app/api/v1/endpoints/donations.py
from fastapi import APIRouter, Depends, BackgroundTasks

from core.dependencies import get_donation_service
from services.donation_service import DonationService
from schemas.donation import (
    DonationIntentRequest, DonationIntentResponse, DonationFinalize, DonationConfirm, DonationOutcome
)

router = APIRouter()


@router.post("/intent", response_model=DonationIntentResponse)
async def create_donation_intent(
        data: DonationIntentRequest,
        service: DonationService = Depends(get_donation_service)
):
    intent = await service.initiate_donation(data.campaign_id, data.amount, data.donor, data.is_anonymous)
    return DonationIntentResponse(**intent.model_dump())


@router.post("", response_model=DonationOutcome)
async def finalize_donation(
        data: DonationFinalize,
        background_tasks: BackgroundTasks,
        service: DonationService = Depends(get_donation_service)
):
    """Record a donation once the card payment has succeeded"""
    return await service.finalize_donation(
        data.campaign_id, data.amount, data.donor, data.is_anonymous,
        data.payment_intent_id, background_tasks,
    )


@router.post("/confirm", response_model=DonationOutcome)
async def confirm_donation(
        data: DonationConfirm,
        background_tasks: BackgroundTasks,
        service: DonationService = Depends(get_donation_service)
):
    return await service.confirm_and_finalize(
        data.campaign_id, data.amount, data.donor, data.is_anonymous,
        data.payment_intent_id, data.payment_method_id, background_tasks,
    )
