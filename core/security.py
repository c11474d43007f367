# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from starlette import status

from core.config import settings


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def is_expired(now: datetime, last_activity: datetime, timeout: timedelta) -> bool:
    """True once `timeout` has elapsed since the last recorded activity."""
    return now - last_activity >= timeout


def should_warn(now: datetime, last_activity: datetime, timeout: timedelta, warning: timedelta) -> bool:
    """True inside the warning window that precedes expiry."""
    if is_expired(now, last_activity, timeout):
        return False
    return now - last_activity >= timeout - warning


def session_timeout() -> timedelta:
    return timedelta(minutes=settings.ADMIN_SESSION_TIMEOUT_MINUTES)


def session_warning() -> timedelta:
    return timedelta(minutes=settings.ADMIN_SESSION_WARNING_MINUTES)


def create_access_token(subject: str, extra_data: dict = None, last_activity: Optional[datetime] = None) -> str:
    """Issue a token stamped with the caller's last activity."""
    last_activity = last_activity or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "type": "access",
        "iat": last_activity,
        "last_activity": int(last_activity.timestamp()),
        # hard ceiling; the sliding window is enforced through last_activity
        "exp": last_activity + session_timeout(),
    }

    if extra_data:
        payload.update(extra_data)

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    return payload
