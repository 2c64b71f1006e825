"""
Tests for the authentication endpoints and token revocation
"""

from datetime import timedelta

from app.core.security import jwt_manager
from app.utils.timeutils import utcnow

REGISTRATION = {
    "username": "ada_l",
    "email": "ada@example.com",
    "password": "Engine42",
    "grade_level": 9,
    "preferred_subjects": ["mathematics", "physics"],
}


def test_register_returns_user_and_tokens(client):
    response = client.post("/api/auth/register", json=REGISTRATION)

    assert response.status_code == 201
    data = response.json()
    assert data["user"]["username"] == "ada_l"
    assert data["user"]["grade_level"] == 9
    assert data["user"]["preferred_subjects"] == ["mathematics", "physics"]
    assert data["tokens"]["token_type"] == "Bearer"
    assert data["tokens"]["access_token"]
    assert data["tokens"]["refresh_token"]


def test_register_duplicate_username(client):
    client.post("/api/auth/register", json=REGISTRATION)

    response = client.post(
        "/api/auth/register", json={**REGISTRATION, "email": "other@example.com"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "USERNAME_EXISTS"


def test_register_rejects_weak_password(client):
    response = client.post(
        "/api/auth/register", json={**REGISTRATION, "password": "alllowercase"}
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_FAILED"


def test_login_and_profile(client, make_user):
    make_user("grace", password="Cobol1959")

    login = client.post(
        "/api/auth/login", json={"username": "grace", "password": "Cobol1959"}
    )
    assert login.status_code == 200
    token = login.json()["tokens"]["access_token"]

    profile = client.get(
        "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
    )
    assert profile.status_code == 200
    assert profile.json()["username"] == "grace"


def test_login_wrong_password(client, make_user):
    make_user("grace", password="Cobol1959")

    response = client.post(
        "/api/auth/login", json={"username": "grace", "password": "Wrong1234"}
    )

    assert response.status_code == 401


def test_login_unknown_user_without_auto_register(client):
    response = client.post(
        "/api/auth/login", json={"username": "nobody", "password": "Secret123"}
    )

    assert response.status_code == 401


def test_inactive_user_cannot_login(client, make_user):
    make_user("dormant", password="Secret123", is_active=False)

    response = client.post(
        "/api/auth/login", json={"username": "dormant", "password": "Secret123"}
    )

    assert response.status_code == 403


def test_protected_endpoint_requires_token(client):
    assert client.get("/api/auth/profile").status_code == 401


def test_garbage_token_is_rejected(client):
    response = client.get(
        "/api/auth/profile", headers={"Authorization": "Bearer not.a.token"}
    )

    assert response.status_code == 401


def test_logout_revokes_earlier_tokens(client, make_user):
    user = make_user("leaver")
    token = jwt_manager.create_access_token(
        user, login_time=utcnow() - timedelta(minutes=5)
    )
    headers = {"Authorization": f"Bearer {token}"}

    assert client.post("/api/auth/logout", headers=headers).status_code == 200

    response = client.get("/api/auth/profile", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has been revoked"


def test_refresh_token_issues_usable_access_token(client):
    tokens = client.post("/api/auth/register", json=REGISTRATION).json()["tokens"]

    response = client.post(
        "/api/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]}
    )

    assert response.status_code == 200
    access_token = response.json()["access_token"]
    profile = client.get(
        "/api/auth/profile", headers={"Authorization": f"Bearer {access_token}"}
    )
    assert profile.status_code == 200


def test_access_token_is_not_a_refresh_token(client):
    tokens = client.post("/api/auth/register", json=REGISTRATION).json()["tokens"]

    response = client.post(
        "/api/auth/refresh-token", json={"refresh_token": tokens["access_token"]}
    )

    assert response.status_code == 401


def test_update_profile(client, make_user, auth_headers):
    user = make_user("editor")

    response = client.put(
        "/api/auth/profile",
        json={"grade_level": 11, "preferred_subjects": ["history"]},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["grade_level"] == 11
    assert response.json()["preferred_subjects"] == ["history"]


def test_change_password(client, make_user, auth_headers):
    user = make_user("changer", password="OldPass1")
    headers = auth_headers(user)

    wrong = client.put(
        "/api/auth/change-password",
        json={"current_password": "Nope1234", "new_password": "NewPass1"},
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["error"] == "INVALID_PASSWORD"

    changed = client.put(
        "/api/auth/change-password",
        json={"current_password": "OldPass1", "new_password": "NewPass1"},
        headers=headers,
    )
    assert changed.status_code == 200

    login = client.post(
        "/api/auth/login", json={"username": "changer", "password": "NewPass1"}
    )
    assert login.status_code == 200


def test_validate_token(client, make_user, auth_headers):
    user = make_user("checker")

    response = client.get("/api/auth/validate-token", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["user"]["username"] == "checker"
    assert response.json()["token_expires_at"] is not None
