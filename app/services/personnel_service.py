# app/services/personnel_service.py
import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.auth.dependencies import is_manager
from app.models.company import Company
from app.models.personnel import Personnel
from app.models.user import User
from app.schemas.personnel import PersonnelUpdate
from app.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value else None


def serialize_personnel(person: Personnel) -> dict:
    return {
        "id": person.id,
        "user_id": person.user_id,
        "name": person.name,
        "first_name": person.first_name,
        "last_name": person.last_name,
        "rank": person.rank,
        "service_number": person.service_number or person.afp_serial_number,
        "email": person.email,
        "phone": person.phone,
        "company": person.company_display,
        "company_id": person.company_id,
        "status": person.status,
        "date_joined": _iso(person.date_joined),
        "last_promotion_date": _iso(person.last_promotion_date),
        "is_active": person.is_active,
        "created_at": _iso(person.created_at),
        "updated_at": _iso(person.updated_at),
    }


class PersonnelService:

    @staticmethod
    def list_personnel(
        db: Session,
        viewer: User,
        company: Optional[str] = None,
        status: Optional[str] = None,
        role: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Personnel]:
        """
        Personnel records, optionally filtered by company, readiness status and
        the role of the linked account.

        Staff only ever see their own company; admins and directors may filter
        by any company name (case-insensitive, partial match).
        """
        query = db.query(Personnel).outerjoin(Company, Personnel.company_id == Company.id)

        if not is_manager(viewer):
            own = (viewer.company or "").lower()
            query = query.filter(or_(func.lower(Company.name) == own, func.lower(Personnel.company_name) == own))
        elif company:
            pattern = f"%{company.strip()}%"
            query = query.filter(or_(Company.name.ilike(pattern), Personnel.company_name.ilike(pattern)))

        if status:
            query = query.filter(func.lower(Personnel.status) == status.strip().lower())
        if role:
            query = query.join(User, Personnel.user_id == User.id).filter(func.lower(User.role) == role.strip().lower())
        if not include_inactive:
            query = query.filter(Personnel.is_active.is_(True))

        people = query.order_by(Personnel.name, Personnel.id).all()
        logger.info(f"👥 {viewer.email} listed {len(people)} personnel (company={company!r}, status={status!r}, role={role!r})")
        return people

    @staticmethod
    def get(db: Session, personnel_id: str) -> Personnel:
        person = db.query(Personnel).filter(Personnel.id == personnel_id).first()
        if not person:
            raise NotFoundError("Personnel not found")
        return person

    @staticmethod
    def update(db: Session, editor: User, personnel_id: str, payload: PersonnelUpdate) -> Personnel:
        person = PersonnelService.get(db, personnel_id)
        changes = payload.model_dump(exclude_unset=True)

        if changes.get("company_id"):
            if not db.query(Company).filter(Company.id == changes["company_id"]).first():
                raise NotFoundError("Company not found")

        for field_name, value in changes.items():
            if value is None and field_name in ("name", "status"):
                continue
            setattr(person, field_name, value)

        db.commit()
        db.refresh(person)
        logger.info(f"📝 Personnel {person.id} updated by {editor.email}: {sorted(changes)}")
        return person

    @staticmethod
    def set_status(db: Session, editor: User, personnel_id: str, status: str) -> Personnel:
        person = PersonnelService.get(db, personnel_id)
        previous = person.status
        person.status = status
        db.commit()
        db.refresh(person)
        logger.info(f"Personnel {person.id} status {previous} -> {status} by {editor.email}")
        return person

    @staticmethod
    def deactivate(db: Session, editor: User, personnel_id: str) -> Personnel:
        person = PersonnelService.get(db, personnel_id)
        person.is_active = False
        db.commit()
        db.refresh(person)
        logger.info(f"Personnel {person.id} deactivated by {editor.email}")
        return person
