# app/routes/analytics.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import MANAGER_ROLES, require_roles
from app.database import get_db
from app.models.user import User
from app.services.analytics_service import build_prescriptive
from app.utils.responses import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/prescriptive")
async def prescriptive_analytics(
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    logger.info(f"📊 Prescriptive analytics requested by {user.email}")
    return ok(build_prescriptive(db))
