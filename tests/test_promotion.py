from datetime import date, timedelta

import pytest

from app.services.promotion import (
    CandidateInput,
    ScoringConfig,
    canonical_rank,
    days_in_rank,
    eligibility_tier,
    next_rank,
    rank_candidates,
    recommend,
    required_trainings,
    score_candidate,
    tier_counts,
    training_score,
)

TODAY = date(2026, 6, 1)


def candidate(**fields):
    fields.setdefault("personnel_id", "p-1")
    fields.setdefault("name", "Juan Dela Cruz")
    return CandidateInput(**fields)


def test_seasoned_private_is_recommended_for_pfc():
    entry = recommend(
        candidate(rank="Private", completed_trainings=3, last_promotion_date=TODAY - timedelta(days=731)),
        TODAY,
    )
    assert entry["recommended_rank"] == "Private First Class"
    assert entry["score"] >= 80
    assert entry["eligibility"] in ("IMMEDIATE", "PRIORITY")
    assert entry["days_in_rank"] == 731
    assert entry["eligibility_date"] == (TODAY + timedelta(days=7)).isoformat()


def test_basis_score_formula():
    # 1 of 4 trainings, one year in rank: 25 * 0.9 + 5
    breakdown = score_candidate(
        candidate(rank="Corporal", completed_trainings=1, last_promotion_date=TODAY - timedelta(days=365)),
        TODAY,
    )
    assert breakdown.training == 25.0
    assert breakdown.time_in_grade == 5.0
    assert breakdown.total == 28
    assert breakdown.eligibility == "NOT_ELIGIBLE"


def test_extra_inputs_do_not_move_the_total():
    base = candidate(rank="Sergeant", completed_trainings=5, date_joined=date(2010, 1, 1))
    boosted = candidate(
        rank="Sergeant",
        completed_trainings=5,
        date_joined=date(2010, 1, 1),
        performance_scores=[95, 99],
        education_courses=4,
    )
    assert score_candidate(base, TODAY).total == score_candidate(boosted, TODAY).total
    assert score_candidate(boosted, TODAY).performance == 97.0
    assert score_candidate(boosted, TODAY).education == 100.0


def test_floors_apply_to_both_components():
    config = ScoringConfig(min_training_score=50, min_time_score=5)
    breakdown = score_candidate(candidate(rank="Private", last_promotion_date=TODAY), TODAY, config)
    assert breakdown.training == 50.0
    assert breakdown.time_in_grade == 5.0
    assert breakdown.total == 50


def test_time_in_rank_falls_back_to_join_date_then_epoch():
    config = ScoringConfig(default_epoch=date(2026, 1, 1))
    assert days_in_rank(candidate(date_joined=date(2026, 5, 1)), TODAY, config) == 31
    assert days_in_rank(candidate(), TODAY, config) == 151
    assert days_in_rank(candidate(last_promotion_date=TODAY + timedelta(days=3)), TODAY, config) == 0


@pytest.mark.parametrize("total, tier", [
    (100, "IMMEDIATE"),
    (90, "IMMEDIATE"),
    (89, "PRIORITY"),
    (80, "PRIORITY"),
    (70, "RECOMMENDED"),
    (60, "ELIGIBLE"),
    (59, "NOT_ELIGIBLE"),
    (0, "NOT_ELIGIBLE"),
])
def test_eligibility_tiers(total, tier):
    assert eligibility_tier(total) == tier


def test_rank_names_and_ladder():
    assert canonical_rank(None) == "Private"
    assert canonical_rank("  sergeant ") == "Sergeant"
    assert canonical_rank("Sgt.") == "Sergeant"
    assert canonical_rank("1LT") == "First Lieutenant"
    assert canonical_rank("Admiral") is None

    assert next_rank("Colonel") == "Brigadier General"
    assert next_rank("Brigadier General") is None
    assert next_rank("Admiral") is None

    assert required_trainings("Private") == 2
    assert required_trainings("Admiral") == 999


def test_no_recommendation_without_next_rank():
    assert recommend(candidate(rank="Brigadier General", completed_trainings=20), TODAY) is None
    assert recommend(candidate(rank="Fleet Admiral"), TODAY) is None


def test_training_score_caps_and_zero_requirement():
    assert training_score(10, 2) == 100.0
    assert training_score(0, 0) == 100.0
    assert training_score(1, 3) == pytest.approx(33.333, rel=1e-3)


def test_ranking_sorts_by_score_then_service_number_then_id():
    promoted = TODAY - timedelta(days=800)
    people = [
        candidate(personnel_id="c", rank="Private", completed_trainings=2, last_promotion_date=promoted),
        candidate(personnel_id="b", rank="Private", completed_trainings=2, last_promotion_date=promoted, service_number="SN-2"),
        candidate(personnel_id="a", rank="Private", completed_trainings=2, last_promotion_date=promoted, service_number="SN-1"),
        candidate(personnel_id="z", rank="Private", completed_trainings=2, last_promotion_date=promoted, service_number="SN-1"),
        candidate(personnel_id="low", rank="Private", completed_trainings=0, last_promotion_date=TODAY, service_number="SN-0"),
        candidate(personnel_id="top", rank="Brigadier General", completed_trainings=50),
    ]
    ranked = rank_candidates(people, TODAY)

    assert [e["id"] for e in ranked] == ["a", "z", "b", "c", "low"]
    assert ranked[-1]["eligibility"] == "NOT_ELIGIBLE"

    counts = tier_counts(ranked)
    assert counts["IMMEDIATE"] == 4
    assert counts["NOT_ELIGIBLE"] == 1
    assert sum(counts.values()) == len(ranked)
