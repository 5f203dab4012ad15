# app/services/rids_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.rids import RIDS
from app.models.user import User
from app.schemas.rids import RIDSData
from app.services.blob_store import BlobStore, DEFAULT_BUCKET, GRIDFS_SCHEME
from app.utils.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from app.utils.hash import hash_password

logger = logging.getLogger(__name__)

PENDING_REGISTRATION_NAME = "Pending Registration"

# section -> (payload key, fields that must all be filled in)
REQUIRED_FIELDS = {
    "personal_info": ("personal_information", ("full_name", "date_of_birth", "gender")),
    "contact_info": ("contact_information", ("residential_address", "mobile_number", "email_address")),
    "identification_info": ("identification_info", ("service_id", "height", "weight")),
    "educational_background": ("educational_background", ("highest_education", "school", "year_graduated")),
    "occupation_info": ("occupation_info", ("occupation",)),
}

DICT_SECTIONS = (
    "personal_information",
    "contact_information",
    "identification_info",
    "educational_background",
    "occupation_info",
    "attesting_personnel",
)
LIST_SECTIONS = ("military_training", "special_skills", "awards", "assignments")


def _filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def compute_section_completion(sections: Dict[str, Any]) -> Dict[str, bool]:
    completion = {}
    for flag, (section, fields) in REQUIRED_FIELDS.items():
        data = sections.get(section) or {}
        completion[flag] = all(_filled(data.get(f)) for f in fields)
    training = sections.get("military_training")
    completion["military_training"] = isinstance(training, list) and len(training) > 0
    return completion


def is_sheet_complete(completion: Dict[str, bool]) -> bool:
    # military training is reported but does not gate completeness
    return all(completion[flag] for flag in REQUIRED_FIELDS)


def _iso(value):
    return value.isoformat() if value else None


def empty_template(user_id: str) -> dict:
    sections = {name: {} for name in DICT_SECTIONS if name != "attesting_personnel"}
    sections.update({name: [] for name in LIST_SECTIONS})
    return {
        "id": None,
        "user_id": user_id,
        "is_complete": False,
        "is_submitted": False,
        "is_verified": False,
        **sections,
        "section_completion": compute_section_completion({}),
    }


def serialize_rids(rids: RIDS) -> dict:
    return {
        "id": rids.id,
        "user_id": rids.user_id,
        "is_complete": rids.is_complete,
        "is_submitted": rids.is_submitted,
        "is_verified": rids.is_verified,
        "submission_date": _iso(rids.submission_date),
        "verification_date": _iso(rids.verification_date),
        "verified_by": rids.verified_by,
        "rejection_reason": rids.rejection_reason or "",
        "file_path": rids.file_path or "",
        "personal_information": rids.personal_information or {},
        "contact_information": rids.contact_information or {},
        "identification_info": rids.identification_info or {},
        "educational_background": rids.educational_background or {},
        "occupation_info": rids.occupation_info or {},
        "military_training": rids.military_training or [],
        "special_skills": rids.special_skills or [],
        "awards": rids.awards or [],
        "assignments": rids.assignments or [],
        "section_completion": rids.section_completion or compute_section_completion({}),
        "photo_url": rids.photo_url,
        "signature_url": rids.signature_url,
        "attesting_personnel": rids.attesting_personnel,
        "created_at": _iso(rids.created_at),
        "updated_at": _iso(rids.updated_at),
    }


class RIDSService:

    @staticmethod
    def get_reservist(db: Session, user_id: str) -> User:
        reservist = db.query(User).filter(User.id == user_id).first()
        if not reservist:
            raise NotFoundError("Reservist not found")
        return reservist

    @staticmethod
    def check_access(caller: User, reservist: User, write: bool = False) -> None:
        role = caller.normalized_role
        if role in ("admin", "director"):
            return
        if role == "staff":
            if caller.company != reservist.company:
                raise PermissionDeniedError("You can only access RIDS for reservists in your company")
            return
        if not write and caller.id == reservist.id:
            return
        raise PermissionDeniedError()

    @staticmethod
    def find(db: Session, user_id: str) -> Optional[RIDS]:
        return db.query(RIDS).filter(RIDS.user_id == user_id).first()

    @staticmethod
    def get_for_user(db: Session, caller: User, user_id: str) -> dict:
        reservist = RIDSService.get_reservist(db, user_id)
        RIDSService.check_access(caller, reservist)
        rids = RIDSService.find(db, user_id)
        return serialize_rids(rids) if rids else empty_template(user_id)

    @staticmethod
    def upsert(db: Session, caller: User, user_id: str, data: RIDSData) -> RIDS:
        reservist = RIDSService.get_reservist(db, user_id)
        RIDSService.check_access(caller, reservist, write=True)

        rids = RIDSService.find(db, user_id)
        if rids is None:
            rids = RIDS(user_id=user_id)
            db.add(rids)
            logger.info(f"🆕 Creating RIDS for {user_id}")

        sent = data.model_dump(exclude_unset=True)
        for name in DICT_SECTIONS + LIST_SECTIONS + ("photo_url", "signature_url"):
            if sent.get(name) is not None:
                setattr(rids, name, sent[name])

        merged = {name: getattr(rids, name) for name in DICT_SECTIONS + LIST_SECTIONS}
        completion = compute_section_completion(merged)
        rids.section_completion = completion
        rids.is_complete = is_sheet_complete(completion)

        now = datetime.now(timezone.utc)
        if sent.get("is_submitted") is True:
            rids.is_submitted = True
            rids.submission_date = now
        if sent.get("is_verified") is True:
            rids.is_verified = True
            rids.verification_date = now
            rids.verified_by = caller.id
        elif sent.get("is_verified") is False:
            rids.is_verified = False
            if sent.get("rejection_reason"):
                rids.rejection_reason = sent["rejection_reason"]

        db.commit()
        db.refresh(rids)
        logger.info(f"📝 RIDS for {user_id} saved by {caller.email} (complete={rids.is_complete})")
        return rids

    @staticmethod
    def verify(db: Session, caller: User, reservist_id: str, approved: bool, reason: Optional[str]) -> RIDS:
        reservist = RIDSService.get_reservist(db, reservist_id)
        RIDSService.check_access(caller, reservist, write=True)

        rids = RIDSService.find(db, reservist_id)
        if rids is None:
            raise NotFoundError("RIDS document not found for this reservist")

        if approved:
            rids.is_verified = True
            rids.verification_date = datetime.now(timezone.utc)
            rids.verified_by = caller.id
            rids.rejection_reason = ""
        else:
            rids.is_verified = False
            rids.is_submitted = False
            rids.rejection_reason = reason or "Please update and resubmit your information"

        db.commit()
        db.refresh(rids)
        logger.info(f"{'✅' if approved else '↩️'} RIDS {rids.id} reviewed by {caller.email}")
        return rids

    @staticmethod
    def upload_scanned(
        db: Session,
        caller: User,
        service_id: str,
        data: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> dict:
        """Store a scanned RIDS and open a pending account for its service id."""
        service_id = (service_id or "").strip()
        if not service_id:
            raise ValidationFailedError("Service ID is required")
        if not data:
            raise ValidationFailedError("RIDS PDF file is required")
        if db.query(User).filter(User.service_id == service_id).first():
            raise ConflictError("A reservist with this Service ID already exists")

        blob = BlobStore(db, DEFAULT_BUCKET).put(
            data,
            filename,
            content_type,
            metadata={"service_id": service_id, "kind": "rids", "uploaded_by": caller.id},
        )

        user = User(
            first_name="Pending",
            last_name="Registration",
            email=f"pending_{service_id}@pending.afp",
            password_hash=hash_password(uuid.uuid4().hex),
            role="reservist",
            status="pending",
            company=caller.company,
            service_id=service_id,
            is_verified=False,
        )
        db.add(user)
        db.flush()

        completion = compute_section_completion({})
        rids = RIDS(
            user_id=user.id,
            file_path=f"{GRIDFS_SCHEME}{blob.id}",
            personal_information={"full_name": PENDING_REGISTRATION_NAME},
            identification_info={"service_id": service_id},
            section_completion=completion,
        )
        db.add(rids)
        db.commit()
        logger.info(f"📥 Scanned RIDS for {service_id} stored as {blob.id}")
        return {"user_id": user.id, "rids_id": rids.id, "file_path": f"/api/files/{blob.id}"}

    @staticmethod
    def delete(db: Session, caller: User, user_id: str) -> None:
        rids = RIDSService.find(db, user_id)
        if rids is None:
            raise NotFoundError("RIDS document not found")
        db.delete(rids)
        db.commit()
        logger.info(f"🗑️ RIDS for {user_id} deleted by {caller.email}")
