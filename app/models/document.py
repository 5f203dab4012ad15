# app/models/document.py
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
import uuid

from app.database import Base

DOCUMENT_TYPES = (
    "training_certificate",
    "medical_record",
    "identification",
    "promotion",
    "commendation",
    "other",
)
DOCUMENT_STATUSES = ("pending", "verified", "rejected")


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index('ix_documents_user_id', 'user_id'),
        Index('ix_documents_status', 'status'),
        {'comment': 'Uploaded personnel documents awaiting or past verification'},
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True, default="")
    type = Column(String(50), nullable=False, default="other")
    status = Column(String(20), nullable=False, default="pending")

    # Ownership and review
    user_id = Column(String(36), nullable=False, comment='Owner (user or personnel id)')
    uploaded_by = Column(String(36), nullable=True)
    verified_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_date = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)

    # Binary content pointer: direct path, API path or gridfs://<id>
    file_url = Column(String(500), nullable=False)
    file_id = Column(String(36), nullable=True, comment='Blob store file id when stored internally')
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True, default=0)
    mime_type = Column(String(100), nullable=True, default="application/octet-stream")

    upload_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
