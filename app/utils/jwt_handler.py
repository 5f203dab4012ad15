# app/utils/jwt_handler.py
from datetime import datetime, timedelta
from typing import Optional
import logging

from jose import JWTError, jwt

from app.config import settings

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


def _encode(data: dict, token_type: str, expire: datetime) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": token_type,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token. ``data`` should carry ``sub`` (user id) and ``role``.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return _encode(data, ACCESS, expire)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    return _encode(data, REFRESH, expire)


def decode_token(token: str, expected_type: str = ACCESS) -> Optional[dict]:
    """
    Verify signature and expiry; returns the payload or None when the token
    is invalid, expired, or of the wrong type.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        return None

    if payload.get("type") != expected_type:
        logger.warning(f"JWT type mismatch: expected {expected_type}, got {payload.get('type')}")
        return None
    if not payload.get("sub"):
        return None
    return payload
