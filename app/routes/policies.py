# app/routes/policies.py
from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.auth.dependencies import MANAGER_ROLES, PRIVILEGED_ROLES, get_current_user, require_roles
from app.database import get_db
from app.models.user import User
from app.schemas.policy import PolicyCreate, PolicyUpdate
from app.services.blob_store import POLICY_BUCKET, retrieve_object
from app.services.policy_service import PolicyService, serialize_policy
from app.utils.responses import file_response, ok
from app.utils.upload import display_filename, read_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/policies", tags=["Policies"])


@router.get("")
async def list_policies(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    policies = PolicyService.list_policies(db, status_filter, category)
    return ok({"policies": [serialize_policy(p) for p in policies], "total": len(policies)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: PolicyCreate,
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    policy = PolicyService.create_policy(db, user, payload)
    return ok({"policy": serialize_policy(policy)}, "Policy created successfully")


@router.put("")
async def update_policy(
    payload: PolicyUpdate,
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    policy = PolicyService.update_policy(db, user, payload)
    return ok({"policy": serialize_policy(policy)}, "Policy updated successfully")


@router.delete("")
async def archive_policy(
    id: str = Query(..., min_length=1),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    policy = PolicyService.archive_policy(db, user, id)
    return ok({"policy": serialize_policy(policy)}, "Policy archived successfully")


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_policy(
    file: UploadFile = File(...),
    title: str = Form(..., min_length=1),
    category: str = Form(..., min_length=1),
    description: str = Form(..., min_length=1),
    effective_date: datetime = Form(...),
    expiration_date: Optional[datetime] = Form(None),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    try:
        data = await read_upload(file)
        policy = PolicyService.upload_policy(
            db,
            user,
            data,
            display_filename(file, "policy.pdf"),
            file.content_type,
            title=title,
            category=category,
            description=description,
            effective_date=effective_date,
            expiration_date=expiration_date,
        )
        return ok({"policy": serialize_policy(policy)}, "Policy uploaded successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading policy: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error uploading policy")


@router.get("/document/{policy_id}")
async def serve_policy_document(
    policy_id: str,
    download: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored = PolicyService.get_document(db, policy_id)
    return file_response(stored, download=download)


@router.get("/file/{file_id}")
async def serve_policy_file(
    file_id: str,
    download: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    stored = retrieve_object(db, file_id, (POLICY_BUCKET,))
    return file_response(stored, download=download)


@router.get("/{policy_id}")
async def get_policy(
    policy_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    policy = PolicyService.get_policy(db, policy_id)
    return ok({"policy": serialize_policy(policy)})
