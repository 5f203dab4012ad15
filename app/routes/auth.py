# app/routes/auth.py
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, RefreshRequest, UserProfile
from app.utils.exceptions import AuthenticationError
from app.utils.hash import verify_password
from app.utils.jwt_handler import REFRESH, create_access_token, create_refresh_token, decode_token
from app.utils.responses import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _claims(user: User) -> dict:
    return {"sub": user.id, "role": user.normalized_role}


@router.post("/login")
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(func.lower(User.email) == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning(f"❌ Failed login for {payload.email}")
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise AuthenticationError("User account is inactive")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info(f"✅ {user.email} logged in as {user.normalized_role}")

    return ok({
        "access_token": create_access_token(_claims(user)),
        "refresh_token": create_refresh_token(_claims(user)),
        "token_type": "bearer",
        "user": UserProfile.model_validate(user).model_dump(mode="json"),
    })


@router.post("/refresh")
async def refresh(payload: RefreshRequest, db: Session = Depends(get_db)):
    claims = decode_token(payload.refresh_token, expected_type=REFRESH)
    if claims is None:
        raise AuthenticationError("Invalid or expired refresh token")

    user = db.query(User).filter(User.id == claims["sub"]).first()
    if not user or not user.is_active:
        raise AuthenticationError("User not found")

    return ok({"access_token": create_access_token(_claims(user)), "token_type": "bearer"})


@router.get("/check-status")
async def check_status(user: User = Depends(get_current_user)):
    return ok({
        "id": user.id,
        "status": user.status,
        "role": user.normalized_role,
        "is_active": user.is_active,
        "is_verified": user.is_verified,
    })
