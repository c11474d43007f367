# app/api/v1/router.py
from fastapi import APIRouter
from api.v1.endpoints import (
    # Public
    campaigns,
    pack_orders,
    donations,
    payments,

    # Admin
    admin,
    realtime,
)

api_router = APIRouter()

# ========== 1️⃣ Campaigns & Packs ==========
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])
api_router.include_router(pack_orders.router, prefix="/pack-orders", tags=["Pack Orders"])

# ========== 2️⃣ Donations & Payments ==========
api_router.include_router(donations.router, prefix="/donations", tags=["Donations"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# ========== 3️⃣ Admin ==========
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])
