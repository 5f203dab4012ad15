# app/services/training_service.py
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.auth.dependencies import is_privileged
from app.models.personnel import Personnel
from app.models.training import Training, TrainingAttendee, TrainingRegistration
from app.models.user import User
from app.schemas.training import TrainingCreate, TrainingComplete
from app.services.identity import identity_or_none, resolve_identity
from app.services.promotion import canonical_rank
from app.utils.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value else None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_training(training: Training) -> dict:
    return {
        "id": training.id,
        "title": training.title,
        "description": training.description,
        "type": training.type,
        "location": training.location,
        "instructor": training.instructor,
        "start_date": _iso(training.start_date),
        "end_date": _iso(training.end_date),
        "capacity": training.capacity,
        "registered": training.registered,
        "eligible_ranks": training.eligible_ranks or [],
        "eligible_companies": training.eligible_companies or [],
        "status": training.status,
        "created_by": training.created_by,
        "created_at": _iso(training.created_at),
    }


def serialize_registration(registration: TrainingRegistration) -> dict:
    training = registration.training
    return {
        "registration_id": registration.id,
        "training_id": registration.training_id,
        "user_id": registration.user_id,
        "status": registration.status,
        "registration_date": _iso(registration.registration_date),
        "completion_date": _iso(registration.completion_date or (training.end_date if training else None)),
        "performance_score": registration.performance_score,
        "training": serialize_training(training) if training else None,
    }


def merge_attendees(embedded: List[dict], registrations: List[dict]) -> List[dict]:
    """
    Union of both attendee sources keyed on ``user_id``.

    Embedded entries win when a user appears in both; registration-only users
    are appended in their original order.
    """
    merged: Dict[str, dict] = {}
    for entry in embedded:
        merged.setdefault(entry["user_id"], {**entry, "source": "attendees"})
    for entry in registrations:
        if entry["user_id"] not in merged:
            merged[entry["user_id"]] = {**entry, "source": "registrations"}
    return list(merged.values())


class TrainingService:

    @staticmethod
    def get_training(db: Session, training_id: str) -> Training:
        training = db.query(Training).filter(Training.id == training_id).first()
        if not training:
            raise NotFoundError("Training not found")
        return training

    @staticmethod
    def list_trainings(db: Session, status: Optional[str] = None, upcoming: bool = False) -> List[Training]:
        query = db.query(Training)
        if status:
            query = query.filter(Training.status == status)
        if upcoming:
            query = query.filter(Training.start_date >= datetime.now(timezone.utc))
        return query.order_by(Training.start_date.asc()).all()

    @staticmethod
    def create_training(db: Session, user: User, payload: TrainingCreate) -> Training:
        training = Training(**payload.model_dump(), registered=0, created_by=user.id)
        db.add(training)
        db.commit()
        db.refresh(training)
        logger.info(f"✅ Training '{training.title}' created by {user.email}")
        return training

    @staticmethod
    def register(db: Session, user: User, training_id: str) -> TrainingRegistration:
        training = TrainingService.get_training(db, training_id)

        if training.status in ("completed", "cancelled"):
            raise ValidationFailedError(f"Training is {training.status}")

        existing = (
            db.query(TrainingRegistration)
            .filter(TrainingRegistration.training_id == training.id, TrainingRegistration.user_id == user.id)
            .first()
        )
        if existing and existing.status != "cancelled":
            raise ConflictError("Already registered for this training")

        if training.capacity and training.registered >= training.capacity:
            raise ValidationFailedError("Training is at full capacity")

        if training.eligible_ranks:
            allowed = {canonical_rank(r) for r in training.eligible_ranks}
            if canonical_rank(user.rank) not in allowed:
                raise PermissionDeniedError("Your rank is not eligible for this training")

        if training.eligible_companies and user.company not in training.eligible_companies:
            raise PermissionDeniedError("Your company is not eligible for this training")

        if existing:
            existing.status = "registered"
            existing.registration_date = datetime.now(timezone.utc)
            registration = existing
        else:
            registration = TrainingRegistration(training_id=training.id, user_id=user.id, status="registered")
            db.add(registration)

        attendee = (
            db.query(TrainingAttendee)
            .filter(TrainingAttendee.training_id == training.id, TrainingAttendee.user_id == user.id)
            .first()
        )
        if attendee is None:
            db.add(TrainingAttendee(training_id=training.id, user_id=user.id, status="registered"))
        else:
            attendee.status = "registered"

        training.registered = (training.registered or 0) + 1
        db.commit()
        db.refresh(registration)
        logger.info(f"📝 {user.email} registered for training {training.id} ({training.registered}/{training.capacity or '∞'})")
        return registration

    @staticmethod
    def complete(db: Session, caller: User, payload: TrainingComplete) -> TrainingRegistration:
        training = TrainingService.get_training(db, payload.training_id)

        requested = payload.user_id or caller.id
        if requested != caller.id and not is_privileged(caller):
            raise PermissionDeniedError("Only staff can record completions for other users")
        resolved = resolve_identity(db, requested)
        if not resolved:
            raise NotFoundError("User not found")
        # registrations are keyed on record ids, never on service numbers or emails
        target_id = resolved.record_id

        completion_date = payload.completion_date or datetime.now(timezone.utc)

        registration = (
            db.query(TrainingRegistration)
            .filter(TrainingRegistration.training_id == training.id, TrainingRegistration.user_id == target_id)
            .first()
        )
        if registration is None:
            registration = TrainingRegistration(training_id=training.id, user_id=target_id)
            db.add(registration)
        registration.status = "completed"
        registration.completion_date = completion_date
        if payload.performance_score is not None:
            registration.performance_score = payload.performance_score

        attendee = (
            db.query(TrainingAttendee)
            .filter(TrainingAttendee.training_id == training.id, TrainingAttendee.user_id == target_id)
            .first()
        )
        if attendee is None:
            attendee = TrainingAttendee(training_id=training.id, user_id=target_id)
            db.add(attendee)
        attendee.status = "completed"
        attendee.completion_date = completion_date

        db.commit()
        db.refresh(registration)
        logger.info(f"🎓 Training {training.id} marked completed for {target_id} by {caller.email}")
        return registration

    @staticmethod
    def completed_for(db: Session, user_ids: List[str]) -> List[TrainingRegistration]:
        registrations = (
            db.query(TrainingRegistration)
            .filter(TrainingRegistration.user_id.in_(user_ids), TrainingRegistration.status == "completed")
            .all()
        )
        registrations.sort(
            key=lambda r: _aware(r.completion_date or (r.training.end_date if r.training else None))
            or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return registrations

    @staticmethod
    def linked_ids(db: Session, user: User) -> List[str]:
        """The user's id plus any personnel records linked to it."""
        ids = [user.id]
        ids.extend(p.id for p in db.query(Personnel).filter(Personnel.user_id == user.id).all())
        return ids

    @staticmethod
    def attendees(db: Session, training_id: str) -> List[dict]:
        training = TrainingService.get_training(db, training_id)

        embedded = [
            {
                "user_id": a.user_id,
                "status": a.status,
                "registration_date": _iso(a.registration_date),
                "completion_date": _iso(a.completion_date),
            }
            for a in training.attendees
        ]
        registered = [
            {
                "user_id": r.user_id,
                "status": r.status,
                "registration_date": _iso(r.registration_date),
                "completion_date": _iso(r.completion_date),
                "performance_score": r.performance_score,
            }
            for r in db.query(TrainingRegistration)
            .filter(TrainingRegistration.training_id == training.id)
            .order_by(TrainingRegistration.registration_date.asc())
            .all()
        ]

        merged = merge_attendees(embedded, registered)
        for entry in merged:
            entry["identity"] = identity_or_none(db, entry["user_id"])
        return merged
