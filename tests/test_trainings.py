from datetime import datetime, timezone

from app.models import TrainingRegistration
from app.services.training_service import merge_attendees
from tests.conftest import auth_headers, make_personnel, make_user

COURSE = {
    "title": "Basic Combat First Aid",
    "type": "seminar",
    "location": "Camp Aguinaldo",
    "start_date": "2030-03-01T08:00:00",
    "end_date": "2030-03-03T17:00:00",
}


def create_training(client, staff, **fields):
    response = client.post("/api/trainings", json={**COURSE, **fields}, headers=auth_headers(staff))
    assert response.status_code == 201
    return response.json()["data"]["training"]


def test_merge_attendees_is_a_union_preferring_embedded_entries():
    embedded = [
        {"user_id": "u1", "status": "registered"},
        {"user_id": "u2", "status": "completed"},
    ]
    registrations = [
        {"user_id": "u2", "status": "registered", "performance_score": 88},
        {"user_id": "u3", "status": "registered"},
    ]
    merged = merge_attendees(embedded, registrations)

    assert [m["user_id"] for m in merged] == ["u1", "u2", "u3"]
    assert merged[1]["status"] == "completed"
    assert merged[1]["source"] == "attendees"
    assert merged[2]["source"] == "registrations"
    assert merge_attendees([], []) == []


def test_only_staff_create_trainings(client, reservist, staff):
    assert client.post("/api/trainings", json=COURSE, headers=auth_headers(reservist)).status_code == 403

    training = create_training(client, staff, capacity=20)
    assert training["registered"] == 0
    assert training["created_by"] == staff.id

    listing = client.get("/api/trainings?upcoming=true", headers=auth_headers(reservist)).json()["data"]
    assert [t["id"] for t in listing["trainings"]] == [training["id"]]


def test_schedule_must_be_consistent(client, staff):
    response = client.post(
        "/api/trainings",
        json={**COURSE, "end_date": "2030-02-01T08:00:00"},
        headers=auth_headers(staff),
    )
    assert response.status_code == 400


def test_registration_rules(client, db, staff, reservist, bravo_reservist):
    training = create_training(client, staff, capacity=1)

    first = client.post(f"/api/trainings/{training['id']}/register", headers=auth_headers(reservist))
    assert first.status_code == 200
    assert first.json()["data"]["registration"]["status"] == "registered"
    assert first.json()["data"]["user"]["record_id"] == reservist.id

    again = client.post(f"/api/trainings/{training['id']}/register", headers=auth_headers(reservist))
    assert again.status_code == 409

    full = client.post(f"/api/trainings/{training['id']}/register", headers=auth_headers(bravo_reservist))
    assert full.status_code == 400

    missing = client.post("/api/trainings/unknown/register", headers=auth_headers(reservist))
    assert missing.status_code == 404


def test_eligibility_by_rank_and_company(client, staff, reservist, bravo_reservist):
    sergeants = create_training(client, staff, eligible_ranks=["Sgt"])
    assert client.post(f"/api/trainings/{sergeants['id']}/register", headers=auth_headers(reservist)).status_code == 403

    privates = create_training(client, staff, title="Rifle Marksmanship", eligible_ranks=["Private"], eligible_companies=["Alpha Company"])
    assert client.post(f"/api/trainings/{privates['id']}/register", headers=auth_headers(reservist)).status_code == 200
    assert client.post(f"/api/trainings/{privates['id']}/register", headers=auth_headers(bravo_reservist)).status_code == 403


def test_complete_own_training_and_list_history(client, db, staff, reservist):
    training = create_training(client, staff)
    client.post(f"/api/trainings/{training['id']}/register", headers=auth_headers(reservist))

    done = client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "performance_score": 92.5},
        headers=auth_headers(reservist),
    )
    assert done.status_code == 200
    registration = done.json()["data"]["registration"]
    assert registration["status"] == "completed"
    assert registration["performance_score"] == 92.5
    assert registration["completion_date"] is not None

    completed = client.get("/api/trainings/completed", headers=auth_headers(reservist)).json()["data"]
    assert completed["total"] == 1
    assert completed["trainings"][0]["training"]["title"] == COURSE["title"]

    past = client.get("/api/trainings/user-past", headers=auth_headers(reservist)).json()["data"]
    assert past["summary"]["total_past_trainings"] == 1
    assert past["user"]["id"] == reservist.id


def test_user_past_includes_linked_personnel_records(client, db, staff, reservist):
    person = make_personnel(db, "Juan Dela Cruz", user_id=reservist.id)
    training = create_training(client, staff)

    client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "user_id": person.id},
        headers=auth_headers(staff),
    )
    past = client.get("/api/trainings/user-past", headers=auth_headers(reservist)).json()["data"]
    assert past["summary"]["total_past_trainings"] == 1


def test_completion_for_others_requires_staff(client, staff, reservist, bravo_reservist):
    training = create_training(client, staff)

    denied = client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "user_id": bravo_reservist.id},
        headers=auth_headers(reservist),
    )
    assert denied.status_code == 403

    unknown = client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "user_id": "nobody"},
        headers=auth_headers(staff),
    )
    assert unknown.status_code == 404

    granted = client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "user_id": bravo_reservist.id},
        headers=auth_headers(staff),
    )
    assert granted.status_code == 200

    history = client.get(f"/api/trainings/completed?user_id={bravo_reservist.id}", headers=auth_headers(staff))
    assert history.json()["data"]["total"] == 1
    assert client.get(f"/api/trainings/completed?user_id={bravo_reservist.id}", headers=auth_headers(reservist)).status_code == 403


def test_personnel_listing_merges_both_attendee_sources(client, db, staff, reservist):
    training = create_training(client, staff)
    client.post(f"/api/trainings/{training['id']}/register", headers=auth_headers(reservist))

    # a registration with no matching attendee entry
    walk_in = make_user(db, "walk.in@afp.mil.ph", service_id="SN-7007")
    db.add(TrainingRegistration(
        training_id=training["id"],
        user_id=walk_in.id,
        status="registered",
        registration_date=datetime(2030, 2, 1, tzinfo=timezone.utc),
    ))
    db.commit()

    response = client.get(f"/api/trainings/personnel?training_id={training['id']}", headers=auth_headers(staff))
    assert response.status_code == 200
    personnel = response.json()["data"]["personnel"]
    assert {p["user_id"] for p in personnel} == {reservist.id, walk_in.id}
    by_user = {p["user_id"]: p for p in personnel}
    assert by_user[reservist.id]["source"] == "attendees"
    assert by_user[walk_in.id]["source"] == "registrations"
    assert by_user[walk_in.id]["identity"]["service_id"] == "SN-7007"

    assert client.get(f"/api/trainings/personnel?training_id={training['id']}", headers=auth_headers(reservist)).status_code == 403


def test_completion_by_service_number_counts_toward_promotion(client, db, staff):
    from app.services.analytics_service import build_candidates

    person = make_personnel(db, "Maria Santos", company="Alpha Company", service_number="SN-7777")
    training = create_training(client, staff)

    done = client.post(
        "/api/trainings/complete",
        json={"training_id": training["id"], "user_id": "SN-7777"},
        headers=auth_headers(staff),
    )
    assert done.status_code == 200
    assert done.json()["data"]["registration"]["user_id"] == person.id

    candidate = next(c for c in build_candidates(db) if c.personnel_id == person.id)
    assert candidate.completed_trainings == 1
