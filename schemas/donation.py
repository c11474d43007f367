# app/schemas/donation.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class DonorInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


# ---------- Start payment ----------
class DonationIntentRequest(BaseModel):
    campaign_id: str
    amount: int  # cents
    donor: DonorInfo = DonorInfo()
    is_anonymous: bool = False


class DonationIntentResponse(BaseModel):
    client_secret: str
    intent_id: str
    amount: int
    currency: str


# ---------- Record donation ----------
class DonationFinalize(BaseModel):
    campaign_id: str
    amount: int
    donor: DonorInfo = DonorInfo()
    is_anonymous: bool = False
    payment_intent_id: str = Field(..., min_length=1)


class DonationConfirm(BaseModel):
    """Server-side confirmation followed by recording"""
    campaign_id: str
    amount: int
    donor: DonorInfo = DonorInfo()
    is_anonymous: bool = False
    payment_intent_id: str = Field(..., min_length=1)
    payment_method_id: str = Field(..., min_length=1)


class DonationRead(BaseModel):
    id: str
    campaign_id: str
    amount: int
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None
    message: Optional[str] = None
    is_anonymous: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DonationPublic(BaseModel):
    """Donor email is never public; name is blank for anonymous gifts"""
    id: str
    amount: int
    donor_name: Optional[str] = None
    message: Optional[str] = None
    is_anonymous: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DonationOutcome(BaseModel):
    donation: DonationRead
    created: bool
