# app/models/personnel.py
from sqlalchemy import Column, String, Boolean, DateTime, Date, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from app.database import Base

PERSONNEL_STATUSES = ("Ready", "Not Ready", "Medical Hold", "Training")


class Personnel(Base):
    __tablename__ = "personnels"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, comment='Linked login account, if any')

    # Identity
    name = Column(String(200), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    rank = Column(String(50), nullable=True)
    service_number = Column(String(50), nullable=True, comment='Service number')
    afp_serial_number = Column(String(50), nullable=True, comment='AFP serial number on older imports')
    email = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)

    # Company is either a reference or a bare name from older imports
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="SET NULL"), nullable=True)
    company_name = Column(String(100), nullable=True)

    status = Column(String(20), nullable=False, default="Ready", comment='Ready, Not Ready, Medical Hold, Training')
    date_joined = Column(Date, nullable=True)
    last_promotion_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    company = relationship("Company", lazy="joined")

    __table_args__ = (
        Index('ix_personnel_service_number', 'service_number'),
        Index('ix_personnel_afp_serial_number', 'afp_serial_number'),
        Index('ix_personnel_user_id', 'user_id'),
    )

    @property
    def company_display(self) -> str:
        if self.company is not None and self.company.name:
            return self.company.name
        return self.company_name or "Unknown Company"
