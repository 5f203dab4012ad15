# app/services/promotion.py
"""
Promotion recommendation scoring.

Everything here is a pure function of its inputs; the analytics service
gathers personnel and training data from the database and passes it in.

The total ("basis score") only weighs training completion and time in rank:

    training      = clamp(completed / required * 100, min_training_score, 100)
    time_in_grade = clamp(days_in_rank / 730 * 10, min_time_score, 10)
    total         = round(training * 0.9 + time_in_grade)

Seniority, performance and education are reported alongside for reviewers but
do not move the total.
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

RANK_LADDER = [
    "Private",
    "Private First Class",
    "Corporal",
    "Sergeant",
    "Second Lieutenant",
    "First Lieutenant",
    "Captain",
    "Major",
    "Lieutenant Colonel",
    "Colonel",
    "Brigadier General",
]

RANK_ABBREVIATIONS = {
    "pvt": "Private",
    "pfc": "Private First Class",
    "cpl": "Corporal",
    "sgt": "Sergeant",
    "2lt": "Second Lieutenant",
    "1lt": "First Lieutenant",
    "cpt": "Captain",
    "capt": "Captain",
    "maj": "Major",
    "ltc": "Lieutenant Colonel",
    "col": "Colonel",
    "bgen": "Brigadier General",
}

# Completed trainings needed to leave each rank
REQUIRED_TRAININGS = {
    "Private": 2,
    "Private First Class": 3,
    "Corporal": 4,
    "Sergeant": 5,
    "Second Lieutenant": 6,
    "First Lieutenant": 7,
    "Captain": 8,
    "Major": 9,
    "Lieutenant Colonel": 10,
    "Colonel": 12,
}
UNKNOWN_RANK_REQUIREMENT = 999

TIME_IN_GRADE_DAYS = 730
SENIORITY_SCALE_MONTHS = 240
EDUCATION_POINTS_PER_COURSE = 25
ELIGIBILITY_NOTICE_DAYS = 7

TIERS = (
    (90, "IMMEDIATE"),
    (80, "PRIORITY"),
    (70, "RECOMMENDED"),
    (60, "ELIGIBLE"),
)
NOT_ELIGIBLE = "NOT_ELIGIBLE"


@dataclass(frozen=True)
class ScoringConfig:
    min_training_score: float = 0.0
    min_time_score: float = 0.0
    default_epoch: date = date(2020, 1, 1)

    @classmethod
    def from_settings(cls, settings) -> "ScoringConfig":
        return cls(
            min_training_score=settings.PROMOTION_MIN_TRAINING_SCORE,
            min_time_score=settings.PROMOTION_MIN_TIME_SCORE,
            default_epoch=date.fromisoformat(settings.PROMOTION_DEFAULT_EPOCH),
        )


@dataclass
class CandidateInput:
    personnel_id: str
    name: str
    rank: Optional[str] = None
    service_number: Optional[str] = None
    company: str = "Unknown Company"
    email: Optional[str] = None
    date_joined: Optional[date] = None
    last_promotion_date: Optional[date] = None
    completed_trainings: int = 0
    performance_scores: List[float] = field(default_factory=list)
    education_courses: int = 0


@dataclass
class ScoreBreakdown:
    seniority: float
    performance: float
    time_in_grade: float
    education: float
    training: float
    total: int
    eligibility: str

    def to_dict(self) -> dict:
        return asdict(self)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def canonical_rank(rank: Optional[str]) -> Optional[str]:
    """Missing rank means Private; an unrecognised rank returns None."""
    if rank is None or not str(rank).strip():
        return RANK_LADDER[0]
    cleaned = " ".join(str(rank).split())
    for known in RANK_LADDER:
        if known.lower() == cleaned.lower():
            return known
    return RANK_ABBREVIATIONS.get(cleaned.lower().rstrip("."))


def next_rank(rank: Optional[str]) -> Optional[str]:
    current = canonical_rank(rank)
    if current is None:
        return None
    index = RANK_LADDER.index(current)
    if index == len(RANK_LADDER) - 1:
        return None
    return RANK_LADDER[index + 1]


def required_trainings(rank: Optional[str]) -> int:
    current = canonical_rank(rank)
    return REQUIRED_TRAININGS.get(current, UNKNOWN_RANK_REQUIREMENT)


def days_in_rank(candidate: CandidateInput, today: date, config: ScoringConfig) -> int:
    anchor = (
        _as_date(candidate.last_promotion_date)
        or _as_date(candidate.date_joined)
        or config.default_epoch
    )
    return max(0, (today - anchor).days)


def service_months(candidate: CandidateInput, today: date, config: ScoringConfig) -> int:
    joined = _as_date(candidate.date_joined) or config.default_epoch
    return max(0, (today.year - joined.year) * 12 + today.month - joined.month)


def training_score(completed: int, required: int, floor: float = 0.0) -> float:
    if required <= 0:
        return 100.0
    return _clamp(completed / required * 100, floor, 100.0)


def time_in_grade_score(days: int, floor: float = 0.0) -> float:
    return _clamp(days / TIME_IN_GRADE_DAYS * 10, floor, 10.0)


def basis_total(training: float, time_in_grade: float) -> int:
    return int(round(training * 0.9 + time_in_grade))


def eligibility_tier(total: float) -> str:
    for threshold, tier in TIERS:
        if total >= threshold:
            return tier
    return NOT_ELIGIBLE


def score_candidate(
    candidate: CandidateInput,
    today: Optional[date] = None,
    config: Optional[ScoringConfig] = None,
) -> ScoreBreakdown:
    today = today or date.today()
    config = config or ScoringConfig()

    training = training_score(
        candidate.completed_trainings,
        required_trainings(candidate.rank),
        config.min_training_score,
    )
    time_in_grade = time_in_grade_score(days_in_rank(candidate, today, config), config.min_time_score)
    total = basis_total(training, time_in_grade)

    seniority = _clamp(service_months(candidate, today, config) / SENIORITY_SCALE_MONTHS * 100, 0.0, 100.0)
    scores = [s for s in candidate.performance_scores if s is not None]
    performance = _clamp(sum(scores) / len(scores), 0.0, 100.0) if scores else 0.0
    education = _clamp(candidate.education_courses * EDUCATION_POINTS_PER_COURSE, 0.0, 100.0)

    return ScoreBreakdown(
        seniority=round(seniority, 1),
        performance=round(performance, 1),
        time_in_grade=round(time_in_grade, 2),
        education=round(education, 1),
        training=round(training, 1),
        total=total,
        eligibility=eligibility_tier(total),
    )


def recommend(
    candidate: CandidateInput,
    today: Optional[date] = None,
    config: Optional[ScoringConfig] = None,
) -> Optional[dict]:
    """Recommendation entry for one candidate, or None when no next rank exists."""
    today = today or date.today()
    config = config or ScoringConfig()

    target = next_rank(candidate.rank)
    if target is None:
        return None

    breakdown = score_candidate(candidate, today, config)
    return {
        "id": candidate.personnel_id,
        "name": candidate.name,
        "current_rank": canonical_rank(candidate.rank),
        "recommended_rank": target,
        "company": candidate.company,
        "service_id": candidate.service_number or "",
        "military_email": candidate.email or "",
        "completed_trainings": candidate.completed_trainings,
        "required_trainings": required_trainings(candidate.rank),
        "days_in_rank": days_in_rank(candidate, today, config),
        "score": breakdown.total,
        "eligibility": breakdown.eligibility,
        "breakdown": breakdown.to_dict(),
        "eligibility_date": (today + timedelta(days=ELIGIBILITY_NOTICE_DAYS)).isoformat(),
    }


def _ranking_key(entry: dict):
    service_id = entry.get("service_id") or ""
    # missing service numbers sort after present ones
    return (-entry["score"], service_id == "", service_id, entry["id"])


def rank_candidates(
    candidates: Iterable[CandidateInput],
    today: Optional[date] = None,
    config: Optional[ScoringConfig] = None,
) -> List[dict]:
    """Score, drop candidates with no next rank, sort by total then service number then id."""
    entries = []
    for candidate in candidates:
        entry = recommend(candidate, today, config)
        if entry is not None:
            entries.append(entry)
    entries.sort(key=_ranking_key)
    return entries


def tier_counts(entries: Iterable[dict]) -> Dict[str, int]:
    counts = {tier: 0 for _, tier in TIERS}
    counts[NOT_ELIGIBLE] = 0
    for entry in entries:
        counts[entry["eligibility"]] += 1
    return counts
