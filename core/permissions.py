# app/core/permissions.py
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status

from core.security import decode_token, oauth2_scheme, is_expired, session_timeout
from schemas.admin import AdminPrincipal
import logging
logger = logging.getLogger(__name__)


async def get_current_admin(token: Optional[str] = Depends(oauth2_scheme)) -> AdminPrincipal:
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = decode_token(token)

    if payload.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized")

    last_activity = payload.get("last_activity")
    if last_activity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    last_activity = datetime.fromtimestamp(int(last_activity), tz=timezone.utc)
    if is_expired(datetime.now(timezone.utc), last_activity, session_timeout()):
        logger.info(f"Admin session expired for {payload['sub']}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin session expired. Please log in again.",
        )

    return AdminPrincipal(
        email=payload["sub"],
        full_name=payload.get("full_name"),
        last_activity=last_activity,
    )
