# app/services/policy_service.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.policy import Policy
from app.models.user import User
from app.schemas.policy import PolicyCreate, PolicyUpdate
from app.services.blob_store import (
    BlobStore,
    DEFAULT_BUCKET,
    POLICY_BUCKET,
    POLICY_UPLOAD_PREFIX,
    StoredObject,
    read_policy_upload,
    resolve_file_pointer,
    retrieve_object,
)
from app.utils.exceptions import ConflictError, NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value else None


def serialize_policy(policy: Policy) -> dict:
    return {
        "id": policy.id,
        "title": policy.title,
        "description": policy.description,
        "content": policy.content,
        "category": policy.category,
        "version": policy.version,
        "status": policy.status,
        "effective_date": _iso(policy.effective_date),
        "expiration_date": _iso(policy.expiration_date),
        "document_url": policy.document_url,
        "file_id": policy.file_id,
        "created_by": policy.created_by,
        "created_at": _iso(policy.created_at),
        "updated_at": _iso(policy.updated_at),
    }


class PolicyService:

    @staticmethod
    def list_policies(db: Session, status: Optional[str] = None, category: Optional[str] = None) -> List[Policy]:
        query = db.query(Policy)
        if status:
            query = query.filter(Policy.status == status)
        if category:
            query = query.filter(Policy.category == category)
        return query.order_by(Policy.effective_date.desc(), Policy.title.asc()).all()

    @staticmethod
    def get_policy(db: Session, policy_id: str) -> Policy:
        policy = db.query(Policy).filter(Policy.id == policy_id).first()
        if not policy:
            raise NotFoundError("Policy not found")
        return policy

    @staticmethod
    def _ensure_unique(db: Session, title: str, version: str, exclude_id: Optional[str] = None) -> None:
        query = db.query(Policy).filter(Policy.title == title, Policy.version == version)
        if exclude_id:
            query = query.filter(Policy.id != exclude_id)
        if query.first():
            raise ConflictError(f"Policy '{title}' version {version} already exists")

    @staticmethod
    def create_policy(db: Session, user: User, payload: PolicyCreate) -> Policy:
        PolicyService._ensure_unique(db, payload.title, payload.version)

        pointer = resolve_file_pointer(payload.document_url)
        policy = Policy(
            **payload.model_dump(),
            file_id=pointer.value if pointer and pointer.is_blob else None,
            created_by=user.id,
        )
        db.add(policy)
        db.commit()
        db.refresh(policy)
        logger.info(f"✅ Policy '{policy.title}' v{policy.version} created by {user.email}")
        return policy

    @staticmethod
    def update_policy(db: Session, user: User, payload: PolicyUpdate) -> Policy:
        policy = PolicyService.get_policy(db, payload.id)
        changes = payload.model_dump(exclude_unset=True, exclude={"id"})
        # only these may be cleared with an explicit null
        nullable = {"content", "expiration_date", "document_url"}
        changes = {k: v for k, v in changes.items() if v is not None or k in nullable}

        title = changes.get("title", policy.title)
        version = changes.get("version", policy.version)
        if title != policy.title or version != policy.version:
            PolicyService._ensure_unique(db, title, version, exclude_id=policy.id)

        for field_name, value in changes.items():
            setattr(policy, field_name, value)

        if "document_url" in changes:
            pointer = resolve_file_pointer(changes["document_url"])
            policy.file_id = pointer.value if pointer and pointer.is_blob else None

        if policy.expiration_date and policy.effective_date and policy.expiration_date < policy.effective_date:
            raise ValidationFailedError("expiration_date must not be before effective_date")

        db.commit()
        db.refresh(policy)
        logger.info(f"📝 Policy {policy.id} updated by {user.email}: {sorted(changes)}")
        return policy

    @staticmethod
    def archive_policy(db: Session, user: User, policy_id: str) -> Policy:
        policy = PolicyService.get_policy(db, policy_id)
        policy.status = "archived"
        db.commit()
        db.refresh(policy)
        logger.info(f"🗄️ Policy {policy.id} archived by {user.email}")
        return policy

    @staticmethod
    def upload_policy(
        db: Session,
        user: User,
        data: bytes,
        filename: str,
        content_type: Optional[str],
        title: str,
        category: str,
        description: str,
        effective_date: datetime,
        expiration_date: Optional[datetime] = None,
    ) -> Policy:
        if not data:
            raise ValidationFailedError("Uploaded file is empty")
        if expiration_date and expiration_date < effective_date:
            raise ValidationFailedError("expiration_date must not be before effective_date")

        PolicyService._ensure_unique(db, title, "1.0")

        blob = BlobStore(db, POLICY_BUCKET).put(
            data,
            filename,
            content_type,
            metadata={"title": title, "category": category, "uploaded_by": user.id},
        )
        policy = Policy(
            title=title,
            description=description,
            category=category,
            version="1.0",
            status="published",
            effective_date=effective_date,
            expiration_date=expiration_date,
            document_url=f"/api/policies/file/{blob.id}",
            file_id=blob.id,
            created_by=user.id,
        )
        db.add(policy)
        db.commit()
        db.refresh(policy)
        logger.info(f"✅ Policy document '{title}' uploaded as {blob.id}")
        return policy

    @staticmethod
    def get_document(db: Session, policy_id: str) -> StoredObject:
        """Policy file from the blob store, else from the uploads directory."""
        policy = PolicyService.get_policy(db, policy_id)

        blob_id = policy.file_id
        if not blob_id:
            pointer = resolve_file_pointer(policy.document_url)
            if pointer and pointer.is_blob:
                blob_id = pointer.value

        if blob_id:
            return retrieve_object(db, blob_id, (POLICY_BUCKET, DEFAULT_BUCKET))

        if policy.document_url and policy.document_url.startswith(POLICY_UPLOAD_PREFIX):
            logger.info(f"Serving policy {policy.id} from the uploads directory")
            return read_policy_upload(policy.document_url)

        raise NotFoundError("Policy has no document attached")
