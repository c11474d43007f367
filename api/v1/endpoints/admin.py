# app/api/v1/endpoints/admin.py
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, BackgroundTasks

from core.dependencies import (
    get_approval_service, get_campaign_service, get_pack_order_service, get_donation_service
)
from core.permissions import get_current_admin
from core.security import create_access_token, session_timeout, session_warning
from models.campaign import PaymentStatus
from schemas.admin import AdminPrincipal, SessionRefreshResponse
from schemas.campaign import CampaignRead, CampaignStateRead, CampaignReject
from schemas.donation import DonationRead
from schemas.pack_order import PackOrderRead, PaymentLinkRequest, PaymentLinkResponse, TrackingUpdate
from services.approval_service import ApprovalService
from services.campaign_service import CampaignService
from services.donation_service import DonationService
from services.pack_order_service import PackOrderService
from utils.pagination import PaginatedResponse, page_offset, paginate

router = APIRouter(dependencies=[Depends(get_current_admin)])


# ========== Campaigns ==========
@router.get("/campaigns", response_model=PaginatedResponse[CampaignRead])
async def list_campaigns(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=100),
        service: CampaignService = Depends(get_campaign_service)
):
    items, total = await service.list_campaigns(page_offset(page, limit), limit)
    return paginate(items, total, page, limit)


@router.get("/campaigns/{campaign_id}/state", response_model=CampaignStateRead)
async def get_campaign_state(
        campaign_id: str,
        service: ApprovalService = Depends(get_approval_service)
):
    return await service.get_state(campaign_id)


@router.post("/campaigns/{campaign_id}/approve", response_model=CampaignRead)
async def approve_campaign(
        campaign_id: str,
        background_tasks: BackgroundTasks,
        service: ApprovalService = Depends(get_approval_service)
):
    """Publish a campaign whose pack has been paid"""
    return await service.approve(campaign_id, background_tasks)


@router.post("/campaigns/{campaign_id}/reject", response_model=CampaignRead)
async def reject_campaign(
        campaign_id: str,
        background_tasks: BackgroundTasks,
        data: Optional[CampaignReject] = None,
        service: ApprovalService = Depends(get_approval_service)
):
    return await service.reject(campaign_id, data.reason if data else None, background_tasks)


@router.post("/campaigns/{campaign_id}/deactivate", response_model=CampaignRead)
async def deactivate_campaign(
        campaign_id: str,
        service: ApprovalService = Depends(get_approval_service)
):
    return await service.deactivate(campaign_id)


# ========== Pack orders ==========
@router.get("/pack-orders", response_model=PaginatedResponse[PackOrderRead])
async def list_pack_orders(
        payment_status: Optional[PaymentStatus] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=200),
        service: PackOrderService = Depends(get_pack_order_service)
):
    items, total = await service.list_orders(payment_status, page_offset(page, limit), limit)
    return paginate(items, total, page, limit)


@router.get("/pack-orders/outstanding", response_model=PaginatedResponse[PackOrderRead])
async def list_outstanding_pack_orders(
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=200),
        service: PackOrderService = Depends(get_pack_order_service)
):
    """Unpaid orders, oldest first, for follow-up"""
    items, total = await service.list_outstanding(page_offset(page, limit), limit)
    return paginate(items, total, page, limit)


@router.post("/pack-orders/{order_id}/payment-link", response_model=PaymentLinkResponse,
             response_model_by_alias=True)
async def send_pack_payment_link(
        order_id: str,
        data: PaymentLinkRequest,
        service: PackOrderService = Depends(get_pack_order_service)
):
    outcome = await service.send_payment_link(
        data.pack_order_id or order_id,
        organizer_email=data.organizer_email,
        send_email=data.send_email,
        campaign_title=data.campaign_title,
        organizer_name=data.organizer_name,
    )
    return PaymentLinkResponse(payment_link=outcome.link_url, payment_link_id=outcome.link_id)


@router.patch("/pack-orders/{order_id}/tracking", response_model=PackOrderRead)
async def update_tracking_number(
        order_id: str,
        data: TrackingUpdate,
        service: PackOrderService = Depends(get_pack_order_service)
):
    return await service.set_tracking_number(order_id, data.tracking_number)


# ========== Donations ==========
@router.get("/donations", response_model=PaginatedResponse[DonationRead])
async def list_donations(
        campaign_id: Optional[str] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=200),
        service: DonationService = Depends(get_donation_service)
):
    items, total = await service.list_donations(campaign_id, page_offset(page, limit), limit)
    return paginate(items, total, page, limit)


# ========== Session ==========
@router.post("/session/refresh", response_model=SessionRefreshResponse)
async def refresh_session(admin: AdminPrincipal = Depends(get_current_admin)):
    """Record activity and issue a token with a fresh inactivity window"""
    now = datetime.now(timezone.utc)
    token = create_access_token(
        admin.email,
        extra_data={"role": "admin", "full_name": admin.full_name},
        last_activity=now,
    )
    expires_at = now + session_timeout()
    return SessionRefreshResponse(
        access_token=token,
        expires_at=expires_at,
        warn_at=expires_at - session_warning(),
    )
