# app/routes/trainings.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import PRIVILEGED_ROLES, get_current_user, is_privileged, require_roles
from app.database import get_db
from app.models.user import User
from app.schemas.training import TrainingComplete, TrainingCreate
from app.services.identity import identity_or_none
from app.services.training_service import TrainingService, serialize_registration, serialize_training
from app.utils.exceptions import PermissionDeniedError
from app.utils.responses import ok

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/trainings", tags=["Trainings"])


@router.get("")
async def list_trainings(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trainings = TrainingService.list_trainings(db, status_filter, upcoming)
    return ok({"trainings": [serialize_training(t) for t in trainings], "total": len(trainings)})


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_training(
    payload: TrainingCreate,
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    training = TrainingService.create_training(db, user, payload)
    return ok({"training": serialize_training(training)}, "Training created successfully")


@router.post("/complete")
async def complete_training(
    payload: TrainingComplete,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registration = TrainingService.complete(db, user, payload)
    return ok({"registration": serialize_registration(registration)}, "Training marked as completed")


@router.get("/completed")
async def completed_trainings(
    user_id: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = user_id or user.id
    if target != user.id and not is_privileged(user):
        raise PermissionDeniedError()

    registrations = TrainingService.completed_for(db, [target])
    return ok({
        "user_id": target,
        "trainings": [serialize_registration(r) for r in registrations],
        "total": len(registrations),
    })


@router.get("/user-past")
async def user_past_trainings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registrations = TrainingService.completed_for(db, TrainingService.linked_ids(db, user))
    return ok({
        "trainings": [serialize_registration(r) for r in registrations],
        "user": {
            "id": user.id,
            "name": user.full_name,
            "email": user.email,
            "rank": user.rank,
            "company": user.company,
        },
        "summary": {"total_past_trainings": len(registrations)},
    })


@router.get("/personnel")
async def training_personnel(
    training_id: str = Query(..., min_length=1),
    user: User = Depends(require_roles(*PRIVILEGED_ROLES)),
    db: Session = Depends(get_db),
):
    attendees = TrainingService.attendees(db, training_id)
    return ok({"training_id": training_id, "personnel": attendees, "total": len(attendees)})


@router.post("/{training_id}/register")
async def register_for_training(
    training_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    registration = TrainingService.register(db, user, training_id)
    return ok({
        "registration": serialize_registration(registration),
        "user": identity_or_none(db, user.id),
    }, "Registered for training")
