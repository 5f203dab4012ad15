# app/auth/dependencies.py
from typing import Optional
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User, normalize_role
from app.utils.exceptions import AuthenticationError, PermissionDeniedError
from app.utils.jwt_handler import decode_token

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"
TOKEN_QUERY_PARAM = "token"

PRIVILEGED_ROLES = ("admin", "director", "staff")
MANAGER_ROLES = ("admin", "director")


def extract_token(request: Request) -> Optional[str]:
    """Authorization header first, then the token cookie, then ?token=."""
    auth_header = request.headers.get("Authorization") or ""
    if auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token

    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token

    return request.query_params.get(TOKEN_QUERY_PARAM) or None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = extract_token(request)
    if not token:
        logger.info(f"🔒 No token on {request.method} {request.url.path}")
        raise AuthenticationError()

    payload = decode_token(token)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        logger.warning(f"❌ Token subject not found: {payload['sub']}")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"❌ Inactive user attempted access: {user.email}")
        raise AuthenticationError("User account is inactive")

    # The stored role is authoritative; the claim may be stale
    claimed = normalize_role(payload.get("role"))
    if claimed and claimed != user.normalized_role:
        logger.info(f"Role claim '{claimed}' differs from stored role '{user.normalized_role}' for {user.email}")

    return user


def require_roles(*roles: str):
    """Build a dependency that only lets the given roles through."""
    allowed = {normalize_role(r) for r in roles}

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.normalized_role not in allowed:
            logger.warning(f"🚫 {user.email} ({user.normalized_role}) denied; needs one of {sorted(allowed)}")
            raise PermissionDeniedError()
        return user

    return dependency


def is_privileged(user: User) -> bool:
    return user.normalized_role in PRIVILEGED_ROLES


def is_manager(user: User) -> bool:
    return user.normalized_role in MANAGER_ROLES
