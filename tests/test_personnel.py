from datetime import date

from tests.conftest import auth_headers, make_personnel


def test_get_personnel_access(client, db, staff, reservist, bravo_reservist, alpha_company):
    person = make_personnel(db, "Juan Dela Cruz", company_id=alpha_company.id, user_id=reservist.id, service_number="SN-1001")

    own = client.get(f"/api/personnel/{person.id}", headers=auth_headers(reservist))
    assert own.status_code == 200
    assert own.json()["data"]["personnel"]["company"] == "Alpha Company"

    assert client.get(f"/api/personnel/{person.id}", headers=auth_headers(bravo_reservist)).status_code == 403
    assert client.get(f"/api/personnel/{person.id}", headers=auth_headers(staff)).status_code == 200
    assert client.get("/api/personnel/unknown-id", headers=auth_headers(staff)).status_code == 404


def test_unknown_company_label(client, db, staff):
    person = make_personnel(db, "No Company")
    body = client.get(f"/api/personnel/{person.id}", headers=auth_headers(staff)).json()
    assert body["data"]["personnel"]["company"] == "Unknown Company"


def test_update_and_status_change(client, db, staff):
    person = make_personnel(db, "Carlo Mendoza", rank="Corporal")

    updated = client.put(
        f"/api/personnel/{person.id}",
        json={"rank": "Sergeant", "last_promotion_date": "2026-03-01", "company_name": "Charlie Company"},
        headers=auth_headers(staff),
    ).json()["data"]["personnel"]
    assert updated["rank"] == "Sergeant"
    assert updated["last_promotion_date"] == date(2026, 3, 1).isoformat()
    assert updated["company"] == "Charlie Company"

    changed = client.patch(f"/api/personnel/{person.id}/status", json={"status": "Medical Hold"}, headers=auth_headers(staff))
    assert changed.status_code == 200
    assert changed.json()["data"]["personnel"]["status"] == "Medical Hold"

    invalid = client.patch(f"/api/personnel/{person.id}/status", json={"status": "On Leave"}, headers=auth_headers(staff))
    assert invalid.status_code == 400


def test_update_with_unknown_company(client, db, staff):
    person = make_personnel(db, "Carlo Mendoza")
    response = client.put(f"/api/personnel/{person.id}", json={"company_id": "missing"}, headers=auth_headers(staff))
    assert response.status_code == 404


def test_only_managers_deactivate(client, db, staff, admin):
    person = make_personnel(db, "Carlo Mendoza")
    assert client.delete(f"/api/personnel/{person.id}", headers=auth_headers(staff)).status_code == 403

    response = client.delete(f"/api/personnel/{person.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["personnel"]["is_active"] is False


def test_list_personnel_filters_and_company_scope(client, db, admin, staff, reservist, bravo_reservist, alpha_company):
    linked = make_personnel(db, "Juan Dela Cruz", company_id=alpha_company.id, user_id=reservist.id)
    make_personnel(db, "Rosa Alpha", company="Alpha Company", status="Medical Hold")
    make_personnel(db, "Ben Bravo", company="Bravo Company", user_id=bravo_reservist.id)
    retired = make_personnel(db, "Old Alpha", company="Alpha Company")
    client.delete(f"/api/personnel/{retired.id}", headers=auth_headers(admin))

    everyone = client.get("/api/personnel", headers=auth_headers(admin)).json()["data"]
    assert [p["name"] for p in everyone["personnel"]] == ["Ben Bravo", "Juan Dela Cruz", "Rosa Alpha"]

    bravo = client.get("/api/personnel?company=bravo", headers=auth_headers(admin)).json()["data"]
    assert [p["name"] for p in bravo["personnel"]] == ["Ben Bravo"]

    # staff stay inside their own company whatever they ask for
    scoped = client.get("/api/personnel?company=Bravo%20Company", headers=auth_headers(staff)).json()["data"]
    assert [p["name"] for p in scoped["personnel"]] == ["Juan Dela Cruz", "Rosa Alpha"]

    on_hold = client.get("/api/personnel?status=medical%20hold", headers=auth_headers(staff)).json()["data"]
    assert [p["name"] for p in on_hold["personnel"]] == ["Rosa Alpha"]

    reservists = client.get("/api/personnel?role=reservist", headers=auth_headers(staff)).json()["data"]
    assert [p["id"] for p in reservists["personnel"]] == [linked.id]

    with_inactive = client.get("/api/personnel?include_inactive=true", headers=auth_headers(admin)).json()["data"]
    assert with_inactive["total"] == 4

    assert client.get("/api/personnel", headers=auth_headers(reservist)).status_code == 403
