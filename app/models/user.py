# app/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
import uuid

from app.database import Base

ROLES = ("admin", "director", "staff", "reservist")
ROLE_ALIASES = {"administrator": "admin"}


def normalize_role(role) -> str:
    role = (role or "").strip().lower()
    return ROLE_ALIASES.get(role, role)


class User(Base):
    __tablename__ = "users"
    __table_args__ = {'comment': 'Login accounts for staff and reservists'}

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="reservist", comment='admin, director, staff, reservist')
    company = Column(String(100), nullable=True)
    rank = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="pending", comment='pending, active, inactive')

    # Service identifiers; older records carry the same value under different names
    service_id = Column(String(50), nullable=True, index=True)
    military_id = Column(String(50), nullable=True, index=True)
    serial_number = Column(String(50), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def normalized_role(self) -> str:
        return normalize_role(self.role)

    def __repr__(self):
        return f"<User email={self.email} role={self.role}>"
