# app/models/policy.py
from sqlalchemy import Column, String, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func
import uuid

from app.database import Base

POLICY_STATUSES = ("draft", "published", "archived")


class Policy(Base):
    __tablename__ = "policies"
    __table_args__ = (
        UniqueConstraint('title', 'version', name='uq_policy_title_version'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    category = Column(String(100), nullable=False)
    version = Column(String(20), nullable=False, default="1.0")
    status = Column(String(20), nullable=False, default="draft")
    effective_date = Column(DateTime(timezone=True), nullable=False)
    expiration_date = Column(DateTime(timezone=True), nullable=True)

    # Either an API path into the blob store or a legacy /uploads/policies/<file> path
    document_url = Column(String(500), nullable=True)
    file_id = Column(String(36), nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
