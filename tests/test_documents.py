import uuid

from app.config import settings
from app.models import Document
from tests.conftest import auth_headers

PDF_BYTES = b"%PDF-1.4\n% enlistment order\n" + bytes(range(256)) * 8


def upload(client, user, data=PDF_BYTES, filename="enlistment.pdf", **form):
    form.setdefault("name", "Enlistment Order")
    form.setdefault("type", "Enlistment Order")
    return client.post(
        "/api/documents/upload",
        files={"file": (filename, data, "application/pdf")},
        data=form,
        headers=auth_headers(user),
    )


def test_upload_then_fetch_returns_identical_bytes(client, reservist):
    response = upload(client, reservist)
    assert response.status_code == 201
    document = response.json()["data"]["document"]
    assert document["status"] == "pending"
    assert document["type"] == "other"
    assert document["user_id"] == reservist.id
    assert document["file_url"].startswith("/api/files/")
    assert document["uploaded_by"]["record_id"] == reservist.id

    served = client.get(f"/api/documents/document?id={document['id']}", headers=auth_headers(reservist))
    assert served.status_code == 200
    assert served.content == PDF_BYTES
    assert served.headers["content-type"] == "application/pdf"
    assert served.headers["content-disposition"] == 'inline; filename="enlistment.pdf"'
    assert served.headers["content-length"] == str(len(PDF_BYTES))
    assert served.headers["cache-control"] == "public, max-age=3600"

    downloaded = client.get(
        f"/api/documents/document?id={document['id']}&download=true", headers=auth_headers(reservist)
    )
    assert downloaded.headers["content-disposition"].startswith("attachment;")


def test_raw_blob_id_is_served_through_document_endpoint(client, reservist):
    document = upload(client, reservist).json()["data"]["document"]
    file_id = document["file_url"].rsplit("/", 1)[-1]

    served = client.get(f"/api/documents/document?id={file_id}", headers=auth_headers(reservist))
    assert served.status_code == 200
    assert served.content == PDF_BYTES

    via_files = client.get(f"/api/files/{file_id}", headers=auth_headers(reservist))
    assert via_files.content == PDF_BYTES


def test_empty_upload_is_rejected(client, reservist):
    response = upload(client, reservist, data=b"")
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_oversized_upload_is_rejected(client, reservist, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 64)
    response = upload(client, reservist, data=b"%PDF" + b"x" * 200)
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_document_content_is_limited_to_owner_and_reviewers(client, reservist, bravo_reservist, staff):
    document = upload(client, reservist, name="Medical Certificate", type="Medical Certificate").json()["data"]["document"]
    file_id = document["file_url"].rsplit("/", 1)[-1]

    for path in (f"/api/documents/document?id={document['id']}", f"/api/documents/document?id={file_id}", f"/api/files/{file_id}"):
        assert client.get(path, headers=auth_headers(bravo_reservist)).status_code == 403
        assert client.get(path, headers=auth_headers(reservist)).content == PDF_BYTES
        assert client.get(path, headers=auth_headers(staff)).content == PDF_BYTES


def test_reservists_only_see_their_own_documents(client, reservist, bravo_reservist, staff):
    upload(client, reservist, name="Medical Certificate", type="Medical Certificate")
    upload(client, bravo_reservist)

    own = client.get("/api/documents", headers=auth_headers(reservist)).json()["data"]
    assert own["total"] == 1
    assert own["documents"][0]["type"] == "medical_record"

    everything = client.get("/api/documents", headers=auth_headers(staff)).json()["data"]
    assert everything["total"] == 2

    filtered = client.get(f"/api/documents?user_id={bravo_reservist.id}", headers=auth_headers(staff)).json()["data"]
    assert [d["user_id"] for d in filtered["documents"]] == [bravo_reservist.id]

    # a reservist cannot widen the filter to someone else
    sneaky = client.get(f"/api/documents?user_id={bravo_reservist.id}", headers=auth_headers(reservist)).json()["data"]
    assert [d["user_id"] for d in sneaky["documents"]] == [reservist.id]


def test_filter_by_status_and_type(client, reservist, staff):
    first = upload(client, reservist, name="Diploma", type="College Diploma").json()["data"]["document"]
    upload(client, reservist, name="ID", type="ID Card")
    client.put("/api/documents", json={"id": first["id"], "status": "verified"}, headers=auth_headers(staff))

    verified = client.get("/api/documents?status=verified", headers=auth_headers(staff)).json()["data"]
    assert [d["id"] for d in verified["documents"]] == [first["id"]]

    ids = client.get("/api/documents?type=identification", headers=auth_headers(staff)).json()["data"]
    assert ids["total"] == 1
    assert ids["documents"][0]["name"] == "ID"


def test_create_document_record_from_existing_file(client, reservist, bravo_reservist, staff):
    file_id = str(uuid.uuid4())
    response = client.post(
        "/api/documents",
        json={
            "name": "Training Cert",
            "type": "Training Certificate",
            "file_url": f"gridfs://{file_id}",
            "user_id": bravo_reservist.id,
        },
        headers=auth_headers(reservist),
    )
    assert response.status_code == 201
    document = response.json()["data"]["document"]
    assert document["type"] == "training_certificate"
    assert document["file_url"] == f"/api/files/{file_id}"
    # only staff may file on behalf of someone else
    assert document["user_id"] == reservist.id

    on_behalf = client.post(
        "/api/documents",
        json={"name": "Order", "type": "promotion", "file_url": "/uploads/order.pdf", "user_id": bravo_reservist.id},
        headers=auth_headers(staff),
    ).json()["data"]["document"]
    assert on_behalf["user_id"] == bravo_reservist.id


def test_create_document_requires_fields(client, reservist):
    response = client.post("/api/documents", json={"name": "Order"}, headers=auth_headers(reservist))
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert {d["field"] for d in body["details"]} >= {"body.type", "body.file_url"}


def test_status_update_requires_reviewer(client, reservist):
    document = upload(client, reservist).json()["data"]["document"]
    response = client.put(
        "/api/documents", json={"id": document["id"], "status": "verified"}, headers=auth_headers(reservist)
    )
    assert response.status_code == 403


def test_reverification_records_latest_verifier(client, database, mailer, reservist, staff, admin):
    document = upload(client, reservist).json()["data"]["document"]

    first = client.put(
        "/api/documents", json={"id": document["id"], "status": "verified"}, headers=auth_headers(staff)
    ).json()["data"]["document"]
    assert first["verified_by"] == staff.id
    assert first["verified_date"] is not None

    second = client.put(
        "/api/documents",
        json={"id": document["id"], "status": "verified", "comments": "Checked against the original"},
        headers=auth_headers(admin),
    ).json()["data"]["document"]
    assert second["verified_by"] == admin.id
    assert second["comments"] == "Checked against the original"

    with database.session() as session:
        assert session.get(Document, document["id"]).verified_by == admin.id

    assert [m[0] for m in mailer.sent] == ["document_status", "document_status"]
    assert mailer.sent[0][1] == reservist.email
    assert mailer.sent[0][3] == "verified"


def test_rejection_keeps_comments(client, mailer, reservist, staff):
    document = upload(client, reservist).json()["data"]["document"]
    rejected = client.put(
        "/api/documents",
        json={"id": document["id"], "status": "rejected", "comments": "Illegible scan"},
        headers=auth_headers(staff),
    ).json()["data"]["document"]
    assert rejected["status"] == "rejected"
    assert rejected["comments"] == "Illegible scan"
    assert rejected["verified_by"] is None
    assert mailer.sent[-1][3:] == ("rejected", "Illegible scan")


def test_invalid_status_is_rejected(client, reservist, staff):
    document = upload(client, reservist).json()["data"]["document"]
    response = client.put(
        "/api/documents", json={"id": document["id"], "status": "approved"}, headers=auth_headers(staff)
    )
    assert response.status_code == 400


def test_unknown_document_is_not_found(client, staff):
    response = client.put(
        "/api/documents", json={"id": str(uuid.uuid4()), "status": "verified"}, headers=auth_headers(staff)
    )
    assert response.status_code == 404


def test_only_owner_or_manager_can_delete(client, reservist, bravo_reservist, staff, admin):
    document = upload(client, reservist).json()["data"]["document"]
    file_id = document["file_url"].rsplit("/", 1)[-1]

    assert client.delete(f"/api/documents?id={document['id']}", headers=auth_headers(bravo_reservist)).status_code == 403
    assert client.delete(f"/api/documents?id={document['id']}", headers=auth_headers(staff)).status_code == 403

    response = client.delete(f"/api/documents?id={document['id']}", headers=auth_headers(reservist))
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Document deleted successfully"}

    assert client.get(f"/api/files/{file_id}", headers=auth_headers(admin)).status_code == 404
    other = upload(client, reservist).json()["data"]["document"]
    assert client.delete(f"/api/documents?id={other['id']}", headers=auth_headers(admin)).status_code == 200


def test_files_endpoint_validates_identifier(client, reservist):
    assert client.get("/api/files/not-an-id", headers=auth_headers(reservist)).status_code == 400
    assert client.get(f"/api/files/{uuid.uuid4()}", headers=auth_headers(reservist)).status_code == 404
    assert client.get(f"/api/files/{uuid.uuid4()}").status_code == 401
