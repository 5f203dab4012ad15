# app/routes/personnel.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth.dependencies import MANAGER_ROLES, PRIVILEGED_ROLES, get_current_user, is_privileged, require_roles
from app.database import get_db
from app.models.user import User
from app.schemas.personnel import PersonnelStatusUpdate, PersonnelUpdate
from app.services.identity import resolve_identity
from app.services.personnel_service import PersonnelService, serialize_personnel
from app.utils.exceptions import NotFoundError, PermissionDeniedError
from app.utils.responses import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/personnel", tags=["Personnel"])


@router.get("")
async def list_personnel(
    company: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    role: Optional[str] = None,
    include_inactive: bool = False,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    """
    List personnel. Staff are limited to their own company.
    """
    people = PersonnelService.list_personnel(db, user, company, status_filter, role, include_inactive)
    return ok({"personnel": [serialize_personnel(p) for p in people], "total": len(people)})


@router.get("/resolve/{identifier}")
async def resolve_personnel(
    identifier: str,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    resolved = resolve_identity(db, identifier)
    if not resolved:
        raise NotFoundError(f"No user or personnel record matches {identifier!r}")
    return ok({"identity": resolved.to_dict()})


@router.get("/{personnel_id}")
async def get_personnel(
    personnel_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    person = PersonnelService.get(db, personnel_id)
    if not is_privileged(user) and person.user_id != user.id:
        raise PermissionDeniedError()
    return ok({"personnel": serialize_personnel(person)})


@router.put("/{personnel_id}")
async def update_personnel(
    personnel_id: str,
    payload: PersonnelUpdate,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    person = PersonnelService.update(db, user, personnel_id, payload)
    return ok({"personnel": serialize_personnel(person)}, "Personnel updated successfully")


@router.patch("/{personnel_id}/status")
async def update_personnel_status(
    personnel_id: str,
    payload: PersonnelStatusUpdate,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    person = PersonnelService.set_status(db, user, personnel_id, payload.status)
    return ok({"personnel": serialize_personnel(person)}, f"Status set to {person.status}")


@router.delete("/{personnel_id}")
async def deactivate_personnel(
    personnel_id: str,
    user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
):
    person = PersonnelService.deactivate(db, user, personnel_id)
    return ok({"personnel": serialize_personnel(person)}, "Personnel deactivated")
