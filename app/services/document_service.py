# app/services/document_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.auth.dependencies import is_manager, is_privileged
from app.models.document import Document, DOCUMENT_TYPES
from app.models.user import User
from app.schemas.document import DocumentCreate
from app.services.blob_store import (
    BlobStore,
    DEFAULT_BUCKET,
    GRIDFS_SCHEME,
    StoredObject,
    delete_blob,
    public_file_url,
    resolve_file_pointer,
    retrieve_object,
)
from app.services.identity import identity_or_none
from app.utils.exceptions import NotFoundError, PermissionDeniedError, ValidationFailedError

logger = logging.getLogger(__name__)

# Labels used by the upload forms and older imports
LEGACY_TYPE_MAP = {
    "Personal Information": "other",
    "Birth Certificate": "other",
    "ID Card": "identification",
    "Identification": "identification",
    "Picture 2x2": "identification",
    "3R ROTC Certificate": "training_certificate",
    "Enlistment Order": "other",
    "Promotion": "promotion",
    "Promotion Order": "promotion",
    "Order of Incorporation": "other",
    "Schooling Certificate": "training_certificate",
    "College Diploma": "training_certificate",
    "Educational Background": "other",
    "Military Training": "training_certificate",
    "RIDS": "other",
    "Deployment Order": "other",
    "Medical Certificate": "medical_record",
    "Training Certificate": "training_certificate",
    "Commendation": "commendation",
    "Other": "other",
}


def normalize_document_type(value: Optional[str]) -> str:
    if not value:
        return "other"
    if value in DOCUMENT_TYPES:
        return value
    return LEGACY_TYPE_MAP.get(value.strip(), "other")


def _iso(value):
    return value.isoformat() if value else None


class DocumentService:

    @staticmethod
    def serialize(db: Session, doc: Document) -> dict:
        return {
            "id": doc.id,
            "title": doc.title,
            "name": doc.name,
            "description": doc.description or "",
            "type": normalize_document_type(doc.type),
            "status": doc.status,
            "user_id": doc.user_id,
            "uploaded_by": identity_or_none(db, doc.uploaded_by or doc.user_id),
            "verified_by": doc.verified_by,
            "verified_date": _iso(doc.verified_date),
            "comments": doc.comments,
            "file_url": public_file_url(doc.file_url),
            "file_name": doc.file_name,
            "file_size": doc.file_size or 0,
            "mime_type": doc.mime_type,
            "upload_date": _iso(doc.upload_date),
            "expiration_date": _iso(doc.expiration_date),
            "version": doc.version,
            "created_at": _iso(doc.created_at),
            "updated_at": _iso(doc.updated_at),
        }

    @staticmethod
    def list_documents(
        db: Session,
        user: User,
        status: Optional[str] = None,
        doc_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[dict]:
        query = db.query(Document)

        if is_privileged(user):
            if user_id:
                query = query.filter(Document.user_id == user_id)
        else:
            # everyone else only ever sees their own uploads
            query = query.filter(Document.user_id == user.id)

        if status:
            query = query.filter(Document.status == status)

        docs = query.order_by(Document.created_at.desc(), Document.id.desc()).all()
        results = [DocumentService.serialize(db, doc) for doc in docs]

        if doc_type:
            wanted = normalize_document_type(doc_type)
            results = [r for r in results if r["type"] == wanted]

        logger.info(f"📄 {user.email} listed {len(results)} documents")
        return results

    @staticmethod
    def _owner_for(user: User, requested: Optional[str]) -> str:
        if requested and requested != user.id:
            if is_privileged(user):
                return requested
            logger.warning(f"{user.email} tried to create a document for {requested}; using own id")
        return user.id

    @staticmethod
    def create_document(db: Session, user: User, payload: DocumentCreate) -> Document:
        owner = DocumentService._owner_for(user, payload.user_id)
        pointer = resolve_file_pointer(payload.file_url)

        doc = Document(
            title=payload.title or payload.name,
            name=payload.name,
            description=payload.description,
            type=normalize_document_type(payload.type),
            status="pending",
            user_id=owner,
            uploaded_by=user.id,
            file_url=payload.file_url,
            file_id=pointer.value if pointer and pointer.is_blob else None,
            file_name=payload.file_name or payload.name,
            file_size=payload.file_size,
            mime_type=payload.mime_type,
            expiration_date=payload.expiration_date,
        )
        db.add(doc)
        db.commit()
        db.refresh(doc)
        logger.info(f"✅ Document {doc.id} created for {owner} by {user.email}")
        return doc

    @staticmethod
    def upload_document(
        db: Session,
        user: User,
        data: bytes,
        filename: str,
        content_type: Optional[str],
        name: Optional[str] = None,
        doc_type: Optional[str] = None,
        description: str = "",
        owner_id: Optional[str] = None,
    ) -> Document:
        if not data:
            raise ValidationFailedError("Uploaded file is empty")

        owner = DocumentService._owner_for(user, owner_id)
        blob = BlobStore(db, DEFAULT_BUCKET).put(
            data,
            filename,
            content_type,
            metadata={"user_id": owner, "uploaded_by": user.id, "type": doc_type},
        )

        doc = Document(
            title=name or filename,
            name=name or filename,
            description=description,
            type=normalize_document_type(doc_type),
            status="pending",
            user_id=owner,
            uploaded_by=user.id,
            file_url=f"{GRIDFS_SCHEME}{blob.id}",
            file_id=blob.id,
            file_name=filename,
            file_size=blob.length,
            mime_type=blob.content_type,
        )
        db.add(doc)
        db.commit()
        db.refresh(doc)
        logger.info(f"✅ Uploaded document {doc.id} ({blob.length} bytes) for {owner}")
        return doc

    @staticmethod
    def get_document(db: Session, document_id: str) -> Document:
        doc = db.query(Document).filter(Document.id == document_id).first()
        if not doc:
            raise NotFoundError("Document not found")
        return doc

    @staticmethod
    def update_status(
        db: Session,
        reviewer: User,
        document_id: str,
        status: str,
        comments: Optional[str] = None,
    ) -> Document:
        doc = DocumentService.get_document(db, document_id)

        doc.status = status
        if status == "verified":
            # always the latest verifier, even on a repeat verification
            doc.verified_by = reviewer.id
            doc.verified_date = datetime.now(timezone.utc)
        if comments is not None or status == "rejected":
            doc.comments = comments

        db.commit()
        db.refresh(doc)
        logger.info(f"📝 Document {doc.id} set to {status} by {reviewer.email}")
        return doc

    @staticmethod
    def delete_document(db: Session, user: User, document_id: str) -> None:
        doc = DocumentService.get_document(db, document_id)
        if doc.user_id != user.id and not is_manager(user):
            raise PermissionDeniedError("Only the owner or an administrator can delete this document")

        blob_id = doc.file_id
        if not blob_id:
            pointer = resolve_file_pointer(doc.file_url)
            blob_id = pointer.value if pointer and pointer.is_blob else None

        db.delete(doc)
        db.commit()
        if blob_id:
            delete_blob(db, blob_id)
        logger.info(f"🗑️ Document {document_id} deleted by {user.email}")

    @staticmethod
    def owner_contact(db: Session, doc: Document) -> Tuple[Optional[str], str]:
        """Email address and display name for notifications about ``doc``."""
        identity = identity_or_none(db, doc.user_id)
        if not identity:
            return None, ""
        return identity.get("email"), identity.get("display_name") or ""

    @staticmethod
    def can_view_blob(db: Session, user: User, stored: StoredObject) -> bool:
        """Owner, uploader, owner of a document pointing at it, or any privileged role."""
        if is_privileged(user):
            return True
        if user.id in (stored.metadata.get("user_id"), stored.metadata.get("uploaded_by")):
            return True
        return (
            db.query(Document)
            .filter(Document.file_id == stored.file_id, Document.user_id == user.id)
            .first()
            is not None
        )

    @staticmethod
    def get_content(db: Session, user: User, document_id: str) -> Tuple[StoredObject, str]:
        """
        Bytes for a document and the filename to present.

        When no document record has this id, the id is tried as a raw blob id
        and then as a stored filename. Only the owner and privileged roles may
        read the content.
        """
        doc = db.query(Document).filter(Document.id == document_id).first()
        if doc is None:
            logger.info(f"No document record {document_id}; trying it as a blob id")
            stored = retrieve_object(db, document_id, (DEFAULT_BUCKET,), allow_filename=True)
            if not DocumentService.can_view_blob(db, user, stored):
                raise PermissionDeniedError("You can only view your own documents")
            return stored, stored.filename

        if doc.user_id != user.id and not is_privileged(user):
            raise PermissionDeniedError("You can only view your own documents")

        blob_id = doc.file_id
        if not blob_id:
            pointer = resolve_file_pointer(doc.file_url)
            if pointer is None or not pointer.is_blob:
                raise NotFoundError("Document content is not stored on this server")
            blob_id = pointer.value

        stored = retrieve_object(db, blob_id, (DEFAULT_BUCKET,))
        return stored, doc.file_name or doc.name or stored.filename
