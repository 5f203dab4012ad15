# app/services/cleanup_service.py
import logging
from typing import Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.document import Document
from app.models.rids import RIDS
from app.models.user import User
from app.services.blob_store import delete_blob, resolve_file_pointer

logger = logging.getLogger(__name__)


def _is_pending_registration(user: User) -> bool:
    return user.first_name == "Pending" and user.last_name == "Registration"


def _blob_id(value) -> Optional[str]:
    pointer = resolve_file_pointer(value)
    return pointer.value if pointer and pointer.is_blob else None


def force_cleanup(db: Session, service_id: str) -> Dict:
    """
    Remove every trace of a service id so it can be registered again.

    Placeholder "Pending Registration" accounts are deleted; real accounts are
    reset to unverified/pending. RIDS records and documents belonging to the
    matched users are deleted along with their stored files.
    """
    results = {
        "users_found": 0,
        "users_updated": 0,
        "pending_users_deleted": 0,
        "rids_deleted": 0,
        "documents_deleted": 0,
        "files_deleted": 0,
        "operations": [],
    }

    users: List[User] = (
        db.query(User)
        .filter(or_(User.service_id == service_id, User.military_id == service_id, User.serial_number == service_id))
        .all()
    )
    user_ids = [u.id for u in users]
    results["users_found"] = len(users)

    # RIDS matched by owner or by the service id written on the sheet
    rids_rows = (
        db.query(RIDS)
        .filter(or_(RIDS.user_id.in_(user_ids), RIDS.identification_info["service_id"].as_string() == service_id))
        .all()
    )
    blob_ids = [b for b in (_blob_id(r.file_path) for r in rids_rows) if b]
    for rids in rids_rows:
        db.delete(rids)
    results["rids_deleted"] = len(rids_rows)
    results["operations"].append({"operation": "delete_rids", "count": len(rids_rows)})

    documents = db.query(Document).filter(Document.user_id.in_(user_ids)).all() if user_ids else []
    for doc in documents:
        blob_id = doc.file_id or _blob_id(doc.file_url)
        if blob_id:
            blob_ids.append(blob_id)
        db.delete(doc)
    results["documents_deleted"] = len(documents)
    results["operations"].append({"operation": "delete_documents", "count": len(documents)})

    for user in users:
        if _is_pending_registration(user):
            db.delete(user)
            results["pending_users_deleted"] += 1
        else:
            user.is_verified = False
            user.status = "pending"
            results["users_updated"] += 1
    results["operations"].append({"operation": "users_update", "count": results["users_updated"], "user_ids": user_ids})
    if results["pending_users_deleted"]:
        results["operations"].append({"operation": "pending_users_deleted", "count": results["pending_users_deleted"]})

    db.commit()

    results["files_deleted"] = sum(1 for blob_id in blob_ids if delete_blob(db, blob_id))
    results["operations"].append({"operation": "delete_files", "count": results["files_deleted"]})

    logger.info(f"🧹 Force cleanup for {service_id}: {', '.join(f'{k}={v}' for k, v in results.items() if k != 'operations')}")
    return results
