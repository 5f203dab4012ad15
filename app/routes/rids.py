# app/routes/rids.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.auth.dependencies import MANAGER_ROLES, PRIVILEGED_ROLES, get_current_user, require_roles
from app.database import get_db
from app.models.personnel import Personnel
from app.models.user import User
from app.schemas.rids import RIDSUpsert, RIDSVerify
from app.services.blob_store import DEFAULT_BUCKET, resolve_file_pointer, retrieve_object
from app.services.rids_service import RIDSService, serialize_rids
from app.utils.exceptions import ValidationFailedError
from app.utils.pdf import RIDSPDFGenerator
from app.utils.responses import content_disposition, ok
from app.utils.upload import ALLOWED_SCAN_TYPES, display_filename, read_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/personnel/rids", tags=["RIDS"])


@router.get("")
async def get_rids(
    user_id: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ok({"rids": RIDSService.get_for_user(db, user, user_id)})


@router.put("")
async def upsert_rids(
    payload: RIDSUpsert,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    rids = RIDSService.upsert(db, user, payload.user_id, payload.rids_data)
    return ok({"rids": serialize_rids(rids)}, "RIDS updated successfully")


@router.post("/verify")
async def verify_rids(
    payload: RIDSVerify,
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    rids = RIDSService.verify(db, user, payload.reservist_id, payload.is_approved, payload.reason)

    reservist = RIDSService.get_reservist(db, payload.reservist_id)
    background_tasks.add_task(
        request.app.state.mailer.send_rids_review,
        reservist.email,
        reservist.full_name,
        payload.is_approved,
        rids.rejection_reason,
    )

    return ok(
        {"rids_id": rids.id, "status": "verified" if payload.is_approved else "incomplete"},
        "RIDS verified successfully" if payload.is_approved else "RIDS returned for revision",
    )


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_rids(
    service_id: str = Form(...),
    rids_file: UploadFile = File(...),
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    """
    Store a scanned RIDS and open a pending reservist account for the
    service id, which the reservist later completes at registration.
    """
    try:
        if rids_file.content_type and rids_file.content_type not in ALLOWED_SCAN_TYPES:
            raise ValidationFailedError("RIDS file must be a PDF or image")
        data = await read_upload(rids_file)
        result = RIDSService.upload_scanned(
            db, user, service_id, data, display_filename(rids_file, "rids.pdf"), rids_file.content_type
        )
        return ok(result, "RIDS uploaded successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error uploading RIDS: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error uploading RIDS")


def _photo_bytes(db: Session, photo_url):
    pointer = resolve_file_pointer(photo_url)
    if pointer is None or not pointer.is_blob:
        return None
    try:
        return retrieve_object(db, pointer.value, (DEFAULT_BUCKET,)).data
    except HTTPException as e:
        logger.warning(f"RIDS photo {pointer.value} unavailable: {e.detail}")
        return None


@router.get("/generate-pdf")
async def generate_rids_pdf(
    user_id: str = Query(..., min_length=1),
    download: bool = True,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rids = RIDSService.get_for_user(db, user, user_id)
    reservist = RIDSService.get_reservist(db, user_id)
    personnel = db.query(Personnel).filter(Personnel.user_id == reservist.id).first()

    info = {
        "name": reservist.full_name,
        "rank": reservist.rank or (personnel.rank if personnel else None),
        "service_id": reservist.service_id or (personnel.service_number if personnel else None),
        "company": reservist.company or (personnel.company_display if personnel else None),
    }
    pdf = RIDSPDFGenerator().generate(rids, info, _photo_bytes(db, rids.get("photo_url")))

    filename = f"RIDS_{info['service_id'] or reservist.id}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(filename, download)},
    )


@router.delete("")
async def delete_rids(
    user_id: str = Query(..., min_length=1),
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    RIDSService.delete(db, user, user_id)
    return ok(message="RIDS deleted successfully")
