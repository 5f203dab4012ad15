import pytest

from app.config import settings
from tests.conftest import auth_headers

POLICY = {
    "title": "Reservist Mobilization Policy",
    "description": "Procedures for calling reservists to active duty",
    "category": "Operations",
    "effective_date": "2026-01-01T00:00:00",
}


def create_policy(client, user, **fields):
    return client.post("/api/policies", json={**POLICY, **fields}, headers=auth_headers(user))


def test_create_and_duplicate_version(client, admin):
    first = create_policy(client, admin)
    assert first.status_code == 201
    policy = first.json()["data"]["policy"]
    assert policy["version"] == "1.0"
    assert policy["status"] == "draft"

    duplicate = create_policy(client, admin)
    assert duplicate.status_code == 409
    assert duplicate.json()["success"] is False

    assert create_policy(client, admin, version="1.1").status_code == 201


def test_policy_roles(client, admin, staff, reservist):
    assert create_policy(client, staff).status_code == 403
    policy = create_policy(client, admin).json()["data"]["policy"]

    assert client.get("/api/policies", headers=auth_headers(reservist)).status_code == 403
    listing = client.get("/api/policies", headers=auth_headers(staff)).json()["data"]
    assert listing["total"] == 1

    single = client.get(f"/api/policies/{policy['id']}", headers=auth_headers(reservist))
    assert single.status_code == 200
    assert client.get("/api/policies/does-not-exist", headers=auth_headers(reservist)).status_code == 404


def test_expiration_before_effective_date_is_rejected(client, admin):
    response = create_policy(client, admin, expiration_date="2025-01-01T00:00:00")
    assert response.status_code == 400


def test_partial_update(client, admin):
    policy = create_policy(client, admin, content="Initial text").json()["data"]["policy"]
    create_policy(client, admin, title="Uniform Policy")

    updated = client.put(
        "/api/policies",
        json={"id": policy["id"], "description": "Revised procedures", "status": "published"},
        headers=auth_headers(admin),
    ).json()["data"]["policy"]
    assert updated["description"] == "Revised procedures"
    assert updated["status"] == "published"
    assert updated["content"] == "Initial text"
    assert updated["title"] == POLICY["title"]

    cleared = client.put(
        "/api/policies", json={"id": policy["id"], "content": None, "category": None}, headers=auth_headers(admin)
    ).json()["data"]["policy"]
    assert cleared["content"] is None
    assert cleared["category"] == "Operations"

    clash = client.put(
        "/api/policies", json={"id": policy["id"], "title": "Uniform Policy"}, headers=auth_headers(admin)
    )
    assert clash.status_code == 409


def test_archive(client, admin):
    policy = create_policy(client, admin).json()["data"]["policy"]
    response = client.delete(f"/api/policies?id={policy['id']}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["policy"]["status"] == "archived"

    archived = client.get("/api/policies?status=archived", headers=auth_headers(admin)).json()["data"]
    assert [p["id"] for p in archived["policies"]] == [policy["id"]]


def test_upload_and_serve_policy_document(client, admin, reservist):
    content = b"%PDF-1.4 mobilization handbook"
    response = client.post(
        "/api/policies/upload",
        data={
            "title": "Mobilization Handbook",
            "category": "Operations",
            "description": "Field handbook",
            "effective_date": "2026-02-01T00:00:00",
        },
        files={"file": ("handbook.pdf", content, "application/pdf")},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    policy = response.json()["data"]["policy"]
    assert policy["status"] == "published"
    assert policy["document_url"] == f"/api/policies/file/{policy['file_id']}"

    document = client.get(f"/api/policies/document/{policy['id']}", headers=auth_headers(reservist))
    assert document.status_code == 200
    assert document.content == content
    assert document.headers["content-type"] == "application/pdf"

    by_file = client.get(policy["document_url"], headers=auth_headers(reservist))
    assert by_file.content == content

    # policy files live in their own bucket
    assert client.get(f"/api/files/{policy['file_id']}", headers=auth_headers(reservist)).status_code == 404


def test_document_served_from_upload_directory(client, admin, reservist, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "POLICY_UPLOAD_DIR", str(tmp_path))
    (tmp_path / "code-of-conduct.pdf").write_bytes(b"%PDF conduct")

    policy = create_policy(
        client, admin, title="Code of Conduct", document_url="/uploads/policies/code-of-conduct.pdf"
    ).json()["data"]["policy"]
    assert policy["file_id"] is None

    response = client.get(f"/api/policies/document/{policy['id']}", headers=auth_headers(reservist))
    assert response.status_code == 200
    assert response.content == b"%PDF conduct"


@pytest.mark.parametrize("document_url, status", [
    ("/uploads/policies/../config.py", 400),
    ("/uploads/policies/missing.pdf", 404),
])
def test_upload_directory_errors(client, admin, tmp_path, monkeypatch, document_url, status):
    monkeypatch.setattr(settings, "POLICY_UPLOAD_DIR", str(tmp_path))
    policy = create_policy(client, admin, document_url=document_url).json()["data"]["policy"]
    assert client.get(f"/api/policies/document/{policy['id']}", headers=auth_headers(admin)).status_code == status


def test_policy_without_document(client, admin):
    policy = create_policy(client, admin).json()["data"]["policy"]
    assert client.get(f"/api/policies/document/{policy['id']}", headers=auth_headers(admin)).status_code == 404
