# app/routes/admin.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import MANAGER_ROLES, require_roles
from app.database import get_db
from app.models.user import User
from app.schemas.personnel import ForceCleanupRequest
from app.services.cleanup_service import force_cleanup
from app.utils.responses import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Admin"])


@router.post("/force-cleanup")
async def force_cleanup_service_id(
    payload: ForceCleanupRequest,
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Delete RIDS records, documents and placeholder accounts for a service id.
    """
    logger.warning(f"🧹 Force cleanup of {payload.service_id} requested by {user.email}")
    results = force_cleanup(db, payload.service_id.strip())
    return ok(results, f"Cleanup completed for {payload.service_id}")
