# app/models/rids.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func
import uuid

from app.database import Base


class RIDS(Base):
    """Reservist Information Data Sheet, one per user."""
    __tablename__ = "rids"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), unique=True, nullable=False, index=True)

    # Completion and review status
    is_complete = Column(Boolean, default=False, nullable=False)
    is_submitted = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    submission_date = Column(DateTime(timezone=True), nullable=True)
    verification_date = Column(DateTime(timezone=True), nullable=True)
    verified_by = Column(String(36), nullable=True)
    rejection_reason = Column(Text, nullable=True, default="")

    # Pointer to the uploaded scanned form
    file_path = Column(String(500), nullable=True, default="")

    # Sections
    personal_information = Column(JSON, nullable=True)
    contact_information = Column(JSON, nullable=True)
    identification_info = Column(JSON, nullable=True)
    educational_background = Column(JSON, nullable=True)
    occupation_info = Column(JSON, nullable=True)
    military_training = Column(JSON, nullable=True)
    special_skills = Column(JSON, nullable=True)
    awards = Column(JSON, nullable=True)
    assignments = Column(JSON, nullable=True)
    section_completion = Column(JSON, nullable=True)

    photo_url = Column(String(500), nullable=True)
    signature_url = Column(String(500), nullable=True)
    attesting_personnel = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
