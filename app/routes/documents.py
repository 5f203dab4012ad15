# app/routes/documents.py
from typing import Optional
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.orm import Session

from app.auth.dependencies import PRIVILEGED_ROLES, get_current_user, require_roles
from app.database import get_db
from app.models.user import User
from app.schemas.document import DocumentCreate, DocumentStatusUpdate
from app.services.document_service import DocumentService
from app.utils.upload import display_filename, read_upload
from app.utils.responses import file_response, ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.get("")
async def list_documents(
    status_filter: Optional[str] = Query(None, alias="status"),
    type: Optional[str] = None,
    user_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    documents = DocumentService.list_documents(db, user, status_filter, type, user_id)
    return ok({"documents": documents, "total": len(documents)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_document(
    payload: DocumentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    doc = DocumentService.create_document(db, user, payload)
    return ok({"document": DocumentService.serialize(db, doc)}, "Document created successfully")


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    description: str = Form(""),
    user_id: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Store the file in the chunked store and create a pending document record
    pointing at it.
    """
    try:
        data = await read_upload(file)
        doc = DocumentService.upload_document(
            db,
            user,
            data,
            display_filename(file, "document"),
            file.content_type,
            name=name,
            doc_type=type,
            description=description,
            owner_id=user_id,
        )
        return ok({"document": DocumentService.serialize(db, doc)}, "Document uploaded successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading document: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error uploading document")


@router.put("")
async def update_document_status(
    payload: DocumentStatusUpdate,
    request: Request,
    background_tasks: BackgroundTasks,
    reviewer: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    doc = DocumentService.update_status(db, reviewer, payload.id, payload.status, payload.comments)

    email, name = DocumentService.owner_contact(db, doc)
    if email:
        background_tasks.add_task(
            request.app.state.mailer.send_document_status,
            email,
            name,
            doc.name,
            doc.status,
            doc.comments,
        )

    return ok({"document": DocumentService.serialize(db, doc)}, f"Document {doc.status}")


@router.delete("")
async def delete_document(
    id: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    DocumentService.delete_document(db, user, id)
    return ok(message="Document deleted successfully")


@router.get("/document")
async def serve_document(
    id: str = Query(..., min_length=1),
    download: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored, filename = DocumentService.get_content(db, user, id)
    logger.info(f"📤 Serving document {id} ({stored.length} bytes) to {user.email}")
    return file_response(stored, filename, download)
