# app/schemas/payment.py
from pydantic import BaseModel, Field
from typing import Optional, Dict


class PaymentIntentResult(BaseModel):
    client_secret: str
    intent_id: str
    amount: int
    currency: str


class PaymentLinkResult(BaseModel):
    link_url: str
    link_id: str


class PaymentIntentStatus(BaseModel):
    intent_id: str
    status: str
    amount: int
    currency: Optional[str] = None
    metadata: Dict[str, str] = {}


# ---------- create-payment-intent ----------
class CreatePaymentIntentRequest(BaseModel):
    amount: int
    currency: str = "eur"
    campaign_id: str = Field(..., alias="campaignId")
    donor_email: Optional[str] = Field(None, alias="donorEmail")

    class Config:
        populate_by_name = True


class CreatePaymentIntentResponse(BaseModel):
    success: bool = True
    client_secret: str = Field(..., alias="clientSecret")
    payment_intent_id: str = Field(..., alias="paymentIntentId")
    amount: int
    currency: str

    class Config:
        populate_by_name = True


class WebhookAck(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
    handled: bool = False
