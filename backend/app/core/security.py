# backend/app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from jose import jwt

from app.core.config import settings


def create_access_token(subject: Union[str, Any], expires_minutes: Optional[int] = None) -> str:
    """
    Access token for `subject`. Sign-in happens on the client (Firebase/Google);
    this is used by trusted callers and tests to mint tokens that
    get_current_user_id accepts.
    """
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    to_encode = {"exp": expire, "sub": str(subject), "type": "access"}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Raises jose.JWTError on a bad signature or an expired token.
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
