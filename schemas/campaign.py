# app/schemas/campaign.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal
import re

from core.constants import EMAIL_PATTERN
from models.campaign import PaymentStatus


# ---------- Create ----------
class CampaignCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    organizer: str = Field(..., min_length=2, max_length=200)
    email: str
    county: str
    eircode: Optional[str] = None
    story: str = Field(..., min_length=10)
    goal_amount: int = Field(..., gt=0)
    event_date: str
    event_time: str = "10:00"
    location: str
    image: Optional[str] = None
    social_links: Dict[str, str] = {}
    user_id: Optional[str] = None

    @validator('email')
    def validate_email(cls, v):
        if not re.match(EMAIL_PATTERN, v.strip()):
            raise ValueError("Please enter a valid email address")
        return v.strip()

    @validator('event_date')
    def validate_event_date(cls, v):
        if not re.match(r'^\d{4}-\d{2}-\d{2}$', v):
            raise ValueError("Event date must be YYYY-MM-DD")
        return v

    @validator('event_time')
    def validate_event_time(cls, v):
        if not re.match(r'^\d{2}:\d{2}$', v):
            raise ValueError("Event time must be HH:MM")
        return v


# ---------- Read ----------
class CampaignRead(BaseModel):
    id: str
    campaign_number: int
    title: str
    organizer: str
    email: str
    county: str
    eircode: Optional[str] = None
    story: str
    goal_amount: int
    event_date: str
    event_time: str
    location: str
    image: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None
    is_active: bool
    is_approved: bool
    pack_payment_status: PaymentStatus
    pack_order_id: Optional[str] = None
    created_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CampaignPublic(BaseModel):
    """Public view with the donation total computed on read"""
    id: str
    campaign_number: int
    title: str
    organizer: str
    county: str
    story: str
    goal_amount: int
    raised_amount: Decimal
    event_date: str
    event_time: str
    location: str
    image: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None

    class Config:
        from_attributes = True


class CampaignStateRead(BaseModel):
    campaign_id: str
    state: str
    pack_payment_status: str
    is_active: bool
    is_approved: bool


class CampaignReject(BaseModel):
    reason: Optional[str] = None
