# app/schemas/pack_order.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
from datetime import datetime
from core.constants import GARMENT_SIZES
from models.campaign import PaymentStatus
from models.pack_order import PackType


# ---------- Shipping ----------
class ShippingAddress(BaseModel):
    name: str = ""
    address_line_1: str = ""
    address_line_2: Optional[str] = None
    city: str = ""
    county: str = ""
    eircode: str = ""
    country: str = "Ireland"


class GarmentSizes(BaseModel):
    shirt_1: Optional[str] = None
    shirt_2: Optional[str] = None
    shirt_3: Optional[str] = None
    shirt_4: Optional[str] = None

    @validator('shirt_1', 'shirt_2', 'shirt_3', 'shirt_4')
    def validate_size(cls, v):
        if v is not None and v not in GARMENT_SIZES:
            raise ValueError(f"Size must be one of {', '.join(GARMENT_SIZES)}")
        return v


# ---------- Create order ----------
class PackOrderCreate(BaseModel):
    campaign_id: str
    pack_type: PackType
    shipping_address: ShippingAddress
    mobile_number: str
    garment_sizes: Optional[GarmentSizes] = None
    user_id: Optional[str] = None


class PackOrderRead(BaseModel):
    id: str
    campaign_id: str
    pack_type: PackType
    amount: int
    garment_sizes: Optional[Dict[str, Any]] = None
    shipping_address: Dict[str, Any]
    mobile_number: str
    payment_status: PaymentStatus
    stripe_payment_intent_id: Optional[str] = None
    stripe_payment_link_id: Optional[str] = None
    tracking_number: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------- Payment ----------
class PaymentConfirm(BaseModel):
    payment_intent_id: str = Field(..., min_length=1)


class PaymentFailure(BaseModel):
    reason: Optional[str] = None


class PackPaymentOutcome(BaseModel):
    order_id: str
    campaign_id: str
    changed: bool
    payment_status: str
    paid_at: Optional[datetime] = None


class PaymentLinkRequest(BaseModel):
    pack_order_id: Optional[str] = Field(None, alias="packOrderId")
    campaign_title: Optional[str] = Field(None, alias="campaignTitle")
    organizer_name: Optional[str] = Field(None, alias="organizerName")
    organizer_email: Optional[str] = Field(None, alias="organizerEmail")
    send_email: bool = Field(True, alias="sendEmail")

    class Config:
        populate_by_name = True


class PaymentLinkOutcome(BaseModel):
    link_url: str
    link_id: str
    email: Optional[Dict[str, Any]] = None  # NotificationResult when an email was attempted


class PaymentLinkResponse(BaseModel):
    success: bool = True
    payment_link: str = Field(..., alias="paymentLink")
    payment_link_id: str = Field(..., alias="paymentLinkId")

    class Config:
        populate_by_name = True


class TrackingUpdate(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=100)
