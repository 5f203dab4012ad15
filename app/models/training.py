# app/models/training.py
from sqlalchemy import Column, String, Text, Integer, Float, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base

REGISTRATION_STATUSES = ("registered", "attended", "completed", "cancelled")


class Training(Base):
    __tablename__ = "trainings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=True, comment='e.g. seminar, field exercise, certificate course')
    location = Column(String(255), nullable=True)
    instructor = Column(String(255), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    capacity = Column(Integer, nullable=False, default=0, comment='0 means unlimited')
    registered = Column(Integer, nullable=False, default=0)
    eligible_ranks = Column(JSON, nullable=True, comment='Empty or null means all ranks')
    eligible_companies = Column(JSON, nullable=True, comment='Empty or null means all companies')
    status = Column(String(20), nullable=False, default="upcoming", comment='upcoming, ongoing, completed, cancelled')
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    attendees = relationship(
        "TrainingAttendee",
        back_populates="training",
        cascade="all, delete-orphan",
    )


class TrainingAttendee(Base):
    """Attendee list kept on the training itself; may drift from TrainingRegistration."""
    __tablename__ = "training_attendees"
    __table_args__ = (
        UniqueConstraint('training_id', 'user_id', name='uq_training_attendee'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    training_id = Column(String(36), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    status = Column(String(20), nullable=False, default="registered")
    registration_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completion_date = Column(DateTime(timezone=True), nullable=True)

    training = relationship("Training", back_populates="attendees")


class TrainingRegistration(Base):
    __tablename__ = "training_registrations"
    __table_args__ = (
        UniqueConstraint('training_id', 'user_id', name='uq_training_registration'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    training_id = Column(String(36), ForeignKey("trainings.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="registered")
    registration_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completion_date = Column(DateTime(timezone=True), nullable=True)
    performance_score = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    training = relationship("Training", lazy="joined")
