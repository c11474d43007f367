# app/schemas/notification.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


class NotificationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    simulated: bool = False


class EmailSendRequest(BaseModel):
    """Body posted to the email delivery endpoint"""
    to: str
    subject: str
    html: str
    template_type: str = Field(..., alias="templateType")
    template_data: Dict[str, Any] = Field({}, alias="templateData")

    class Config:
        populate_by_name = True
