# app/schemas/admin.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AdminPrincipal(BaseModel):
    email: str
    full_name: Optional[str] = None
    last_activity: datetime


class SessionRefreshResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    warn_at: datetime
