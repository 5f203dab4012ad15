# app/routes/files.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.blob_store import DEFAULT_BUCKET, retrieve_object
from app.services.document_service import DocumentService
from app.utils.exceptions import PermissionDeniedError
from app.utils.responses import file_response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get("/{file_id}")
async def serve_file(
    file_id: str,
    download: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored = retrieve_object(db, file_id, (DEFAULT_BUCKET,))
    if not DocumentService.can_view_blob(db, user, stored):
        logger.warning(f"⛔ {user.email} denied access to file {file_id}")
        raise PermissionDeniedError("You can only view your own documents")
    return file_response(stored, download=download)
