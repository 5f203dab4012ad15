from datetime import timedelta

from app.utils.jwt_handler import create_access_token, create_refresh_token
from tests.conftest import PASSWORD, auth_headers, make_user


def test_login_returns_tokens_and_profile(client, reservist):
    response = client.post("/api/auth/login", json={"email": reservist.email.upper(), "password": PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["user"]["id"] == reservist.id
    assert body["data"]["user"]["last_login"] is not None

    token = body["data"]["access_token"]
    status = client.get("/api/auth/check-status", headers={"Authorization": f"Bearer {token}"})
    assert status.status_code == 200
    assert status.json()["data"]["role"] == "reservist"


def test_login_with_wrong_password(client, reservist):
    response = client.post("/api/auth/login", json={"email": reservist.email, "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid email or password"}


def test_missing_token_is_rejected(client):
    response = client.get("/api/auth/check-status")
    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.headers["www-authenticate"] == "Bearer"


def test_malformed_and_expired_tokens_are_rejected(client, reservist):
    bad = client.get("/api/auth/check-status", headers={"Authorization": "Bearer not.a.jwt"})
    assert bad.status_code == 401

    expired = create_access_token({"sub": reservist.id, "role": "reservist"}, timedelta(seconds=-5))
    response = client.get("/api/auth/check-status", headers={"Authorization": f"Bearer {expired}"})
    assert response.status_code == 401


def test_refresh_token_cannot_be_used_as_access_token(client, reservist):
    refresh = create_refresh_token({"sub": reservist.id, "role": "reservist"})
    response = client.get("/api/auth/check-status", headers={"Authorization": f"Bearer {refresh}"})
    assert response.status_code == 401

    renewed = client.post("/api/auth/refresh", json={"refresh_token": refresh})
    assert renewed.status_code == 200
    assert renewed.json()["data"]["access_token"]

    access = create_access_token({"sub": reservist.id, "role": "reservist"})
    assert client.post("/api/auth/refresh", json={"refresh_token": access}).status_code == 401


def test_token_from_cookie_and_query(client, reservist):
    token = create_access_token({"sub": reservist.id, "role": "reservist"})

    assert client.get(f"/api/auth/check-status?token={token}").status_code == 200

    client.cookies.set("token", token)
    try:
        assert client.get("/api/auth/check-status").status_code == 200
    finally:
        client.cookies.clear()


def test_header_takes_precedence_over_cookie(client, reservist):
    token = create_access_token({"sub": reservist.id, "role": "reservist"})

    client.cookies.set("token", "garbage")
    try:
        ok = client.get("/api/auth/check-status", headers={"Authorization": f"Bearer {token}"})
        assert ok.status_code == 200
    finally:
        client.cookies.clear()

    client.cookies.set("token", token)
    try:
        # an invalid header token is not rescued by a valid cookie
        bad = client.get("/api/auth/check-status", headers={"Authorization": "Bearer garbage"})
        assert bad.status_code == 401
    finally:
        client.cookies.clear()


def test_stored_role_wins_over_token_claim(client, reservist):
    response = client.get("/api/analytics/prescriptive", headers=auth_headers(reservist, role="admin"))
    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Permission denied"}


def test_administrator_is_treated_as_admin(client, db):
    legacy = make_user(db, "ramon.legacy@afp.mil.ph", role="administrator", company="Headquarters")
    response = client.get("/api/analytics/prescriptive", headers=auth_headers(legacy))
    assert response.status_code == 200


def test_inactive_user_is_rejected(client, db):
    user = make_user(db, "retired.officer@afp.mil.ph", is_active=False)
    assert client.get("/api/auth/check-status", headers=auth_headers(user)).status_code == 401


def test_token_for_deleted_user_is_rejected(client):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000", "role": "admin"})
    response = client.get("/api/auth/check-status", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
