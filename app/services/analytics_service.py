# app/services/analytics_service.py
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.document import Document
from app.models.personnel import Personnel
from app.models.training import TrainingRegistration
from app.models.user import User
from app.services import promotion
from app.services.promotion import CandidateInput, ScoringConfig

logger = logging.getLogger(__name__)

# completion is measured against this many trainings per person
TRAININGS_PER_PERSON_TARGET = 5
EDUCATION_TRAINING_TYPES = ("certificate", "correspondence")


def _education_course(registration: TrainingRegistration) -> bool:
    training = registration.training
    if training is None:
        return False
    label = f"{training.type or ''} {training.title or ''}".lower()
    return any(word in label for word in EDUCATION_TRAINING_TYPES)


def _completed_by_person(db: Session) -> Dict[str, List[TrainingRegistration]]:
    completed = defaultdict(list)
    for registration in db.query(TrainingRegistration).filter(TrainingRegistration.status == "completed").all():
        completed[registration.user_id].append(registration)
    return completed


def _one_per_training(registrations: List[TrainingRegistration]) -> List[TrainingRegistration]:
    by_training: Dict[str, TrainingRegistration] = {}
    for registration in registrations:
        kept = by_training.get(registration.training_id)
        # prefer the row that carries a score
        if kept is None or (kept.performance_score is None and registration.performance_score is not None):
            by_training[registration.training_id] = registration
    return list(by_training.values())


def build_candidates(db: Session) -> List[CandidateInput]:
    completed = _completed_by_person(db)
    candidates = []

    for person in db.query(Personnel).filter(Personnel.is_active.is_(True)).all():
        # registrations may be keyed on the personnel id or the linked user id
        registrations = list(completed.get(person.id, []))
        if person.user_id and person.user_id != person.id:
            registrations.extend(completed.get(person.user_id, []))
        registrations = _one_per_training(registrations)

        candidates.append(
            CandidateInput(
                personnel_id=person.id,
                name=person.name,
                rank=person.rank,
                service_number=person.service_number or person.afp_serial_number,
                company=person.company_display,
                email=person.email,
                date_joined=person.date_joined,
                last_promotion_date=person.last_promotion_date,
                completed_trainings=len(registrations),
                performance_scores=[r.performance_score for r in registrations if r.performance_score is not None],
                education_courses=sum(1 for r in registrations if _education_course(r)),
            )
        )
    return candidates


def training_recommendations(candidates: List[CandidateInput]) -> dict:
    stats = defaultdict(lambda: {"personnel": 0, "completed": 0, "required": 0})
    for candidate in candidates:
        entry = stats[candidate.company]
        entry["personnel"] += 1
        entry["completed"] += candidate.completed_trainings
        required = promotion.required_trainings(candidate.rank)
        if required != promotion.UNKNOWN_RANK_REQUIREMENT:
            entry["required"] += required

    companies = []
    for company, entry in sorted(stats.items()):
        target = entry["personnel"] * TRAININGS_PER_PERSON_TARGET
        current = round(entry["completed"] / target * 100) if target else 0
        current = min(current, 100)
        outstanding = max(0, entry["required"] - entry["completed"])
        improvement = min(100 - current, round(outstanding / target * 100) if target else 0)
        companies.append({
            "company": company,
            "personnel": entry["personnel"],
            "current_training_completion": current,
            "potential_improvement": improvement,
            "projected_completion": min(100, current + improvement),
        })

    companies.sort(key=lambda c: (c["current_training_completion"], c["company"]))
    return {
        "companies": companies,
        "overall_suggestion": (
            "Prioritize training for companies with the lowest completion rates "
            "to improve overall readiness."
        ),
    }


def resource_allocation(candidates: List[CandidateInput]) -> dict:
    counts = defaultdict(int)
    for candidate in candidates:
        counts[candidate.company] += 1

    average = round(len(candidates) / len(counts)) if counts else 0
    imbalances = []
    for company, count in sorted(counts.items()):
        deviation = count - average
        if deviation <= -5:
            recommendation = "Add personnel from reserve pool"
        elif deviation <= -2:
            recommendation = "Monitor staffing levels"
        elif deviation >= 5:
            recommendation = "Consider reassignment of excess personnel"
        else:
            recommendation = "Maintain current staffing levels"
        imbalances.append({
            "company": company,
            "current_count": count,
            "deviation": deviation,
            "recommendation": recommendation,
        })

    return {
        "average_per_company": average,
        "imbalances": imbalances,
        "suggestion": "Redistribute personnel from overstaffed companies to understaffed ones.",
    }


def _owner_company(db: Session, owner_id: str, cache: Dict[str, str]) -> str:
    if owner_id in cache:
        return cache[owner_id]
    company = None
    user = db.query(User).filter(User.id == owner_id).first()
    if user is not None:
        company = user.company
    else:
        person = db.query(Personnel).filter(Personnel.id == owner_id).first()
        if person is not None:
            company = person.company_display
    cache[owner_id] = company or "Unknown Company"
    return cache[owner_id]


def document_backlog(db: Session) -> dict:
    pending = db.query(Document).filter(Document.status == "pending").all()
    cache: Dict[str, str] = {}
    backlog: Dict[str, dict] = {}

    for doc in pending:
        company = _owner_company(db, doc.user_id, cache)
        entry = backlog.setdefault(company, {"company": company, "count": 0, "oldest_pending_date": None})
        entry["count"] += 1
        uploaded = doc.upload_date.date() if doc.upload_date else None
        if uploaded and (entry["oldest_pending_date"] is None or uploaded < entry["oldest_pending_date"]):
            entry["oldest_pending_date"] = uploaded

    rows = sorted(backlog.values(), key=lambda e: (-e["count"], e["company"]))
    for row in rows:
        row["oldest_pending_date"] = row["oldest_pending_date"].isoformat() if row["oldest_pending_date"] else None

    return {
        "backlog": rows,
        "total_pending": len(pending),
        "suggestion": "Verify the oldest pending documents first and focus on companies with the largest backlogs.",
    }


def build_prescriptive(db: Session, today: Optional[date] = None) -> dict:
    today = today or date.today()
    config = ScoringConfig.from_settings(settings)

    candidates = build_candidates(db)
    recommendations = promotion.rank_candidates(candidates, today, config)
    logger.info(f"📊 Prescriptive analytics: {len(candidates)} personnel, {len(recommendations)} promotion entries")

    return {
        "training_recommendations": training_recommendations(candidates),
        "resource_allocation": resource_allocation(candidates),
        "document_verification": document_backlog(db),
        "promotion_recommendations": {
            "personnel": recommendations,
            "tiers": promotion.tier_counts(recommendations),
            "suggestion": (
                "Ranked by training completion and time in rank. Review complete "
                "service records before final determination."
            ),
        },
    }
