"""Tests for the auth and users endpoints."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from models.user import User


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, email="a@b.com", password="password1", **extra):
    return client.post("/api/v1/auth/signup", json={"email": email, "password": password, **extra})


def login(client, email="a@b.com", password="password1", is_admin=False):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password, "is_admin": is_admin})


@pytest.fixture
def tokens(client):
    resp = signup(client, first_name="Ada")
    assert resp.status_code == 201
    return resp.get_json()["data"]["tokens"]


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "database": "ok", "version": "1.0.0"}


def test_signup_returns_tokens_and_profile(client):
    resp = signup(client, first_name="Ada", last_name="Byron")

    assert resp.status_code == 201
    data = resp.get_json()["data"]
    assert set(data["tokens"]) == {
        "access_token", "refresh_token", "access_token_expires_at", "refresh_token_expires_at", "token_type",
    }
    assert data["tokens"]["token_type"] == "bearer"
    assert data["user"]["email"] == "a@b.com"
    assert data["user"]["role"] == "customer"
    assert "password" not in data["user"]
    assert "password_hash" not in data["user"]


def test_signup_duplicate(client, tokens):
    resp = signup(client)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CONFLICT"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "a@b.com", "password": "short"},
        {"email": "not-an-email", "password": "password1"},
        {"password": "password1"},
        {"email": "a@b.com", "password": "password1", "role": "superuser"},
        {"email": "a@b.com", "password": "password1", "first_name": "x" * 1000},
        {"email": "a@b.com", "password": "password1", "last_name": "y" * 256},
        {"email": "a@b.com", "password": "password1", "phone_number": "1" * 100},
        {"email": "a@b.com", "password": "password1", "phone_number": "not a phone"},
        {"email": "a" * 250 + "@b.com", "password": "password1"},
    ],
)
def test_signup_validation(client, payload):
    resp = client.post("/api/v1/auth/signup", json=payload)
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "VALIDATION_ERROR"


def test_signup_cannot_self_assign_admin(client):
    resp = signup(client, role="admin")
    assert resp.status_code == 422


def test_login_success(client, tokens):
    resp = login(client)
    assert resp.status_code == 200
    assert resp.get_json()["data"]["user"]["email"] == "a@b.com"


def test_login_failures_share_one_response(client, tokens):
    wrong_password = login(client, password="WrongPass1")
    unknown_user = login(client, email="nobody@example.com")
    wrong_role = login(client, is_admin=True)

    for resp in (wrong_password, unknown_user, wrong_role):
        assert resp.status_code == 401
    assert wrong_password.get_json() == unknown_user.get_json() == wrong_role.get_json()
    assert wrong_password.get_json()["message"] == "Invalid credentials"


def test_refresh_rotates(client, tokens):
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

    assert resp.status_code == 200
    new_tokens = resp.get_json()["data"]["tokens"]
    assert new_tokens["refresh_token"] != tokens["refresh_token"]

    replay = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401
    assert replay.get_json()["error"] == "INVALID_TOKEN"


def test_refresh_requires_body(client):
    resp = client.post("/api/v1/auth/refresh", json={})
    assert resp.status_code == 422


def test_store_failure_is_generic(client, tokens, monkeypatch):
    def failing_commit(self):
        raise OperationalError("COMMIT", {}, Exception("canceling statement due to statement timeout"))

    monkeypatch.setattr(Session, "commit", failing_commit)
    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    monkeypatch.undo()

    assert resp.status_code == 503
    assert resp.get_json() == {
        "error": "DATABASE_ERROR",
        "message": "Temporary failure, please try again",
        "status": 503,
    }
    # Rolled back: the presented token is still the live one
    retry = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert retry.status_code == 200


def test_signup_race_on_email_is_conflict(client, tokens, monkeypatch):
    monkeypatch.setattr(User, "email_taken", classmethod(lambda cls, session, email, exclude_id=None: False))

    resp = signup(client)

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CONFLICT"


def test_logout_requires_access_token(client, tokens):
    missing = client.post("/api/v1/auth/logout", json={"refresh_token": tokens["refresh_token"]})
    with_refresh = client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=bearer(tokens["refresh_token"]),
    )

    assert missing.status_code == 401
    assert with_refresh.status_code == 401


def test_logout_revokes_refresh_token(client, tokens):
    resp = client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 200

    resp = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401

    again = client.post(
        "/api/v1/auth/logout",
        json={"refresh_token": tokens["refresh_token"]},
        headers=bearer(tokens["access_token"]),
    )
    assert again.status_code == 200


def test_logout_all(client, tokens):
    resp = client.post("/api/v1/auth/logout-all", headers=bearer(tokens["access_token"]))

    assert resp.status_code == 200
    assert resp.get_json()["data"]["revoked"] == 1
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401


def test_profile_round_trip(client, tokens):
    resp = client.get("/api/v1/auth/profile", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    assert resp.get_json()["data"]["first_name"] == "Ada"

    resp = client.put(
        "/api/v1/auth/profile",
        json={"email": "ada@b.com", "first_name": "Ada", "last_name": "Lovelace", "phone_number": "+15550100"},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["email"] == "ada@b.com"
    assert resp.get_json()["data"]["last_name"] == "Lovelace"


def test_users_listing_is_admin_only(app, client, tokens):
    resp = client.get("/api/v1/users", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 403


def test_admin_deactivates_customer(app, client, tokens):
    app.extensions["auth_service"].allow_admin_signup = True
    assert signup(client, email="root@b.com", role="admin").status_code == 201
    admin = login(client, email="root@b.com", is_admin=True).get_json()["data"]

    listing = client.get("/api/v1/users?limit=10", headers=bearer(admin["tokens"]["access_token"]))
    assert listing.status_code == 200
    assert listing.get_json()["meta"]["total"] == 2
    customer_id = next(u["id"] for u in listing.get_json()["data"] if u["email"] == "a@b.com")

    resp = client.post(
        f"/api/v1/users/{customer_id}/deactivate", headers=bearer(admin["tokens"]["access_token"])
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["is_active"] is False

    assert client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401
    assert login(client).status_code == 401


def test_deactivate_unknown_user(app, client):
    app.extensions["auth_service"].allow_admin_signup = True
    signup(client, email="root@b.com", role="admin")
    admin = login(client, email="root@b.com", is_admin=True).get_json()["data"]

    resp = client.post("/api/v1/users/missing/deactivate", headers=bearer(admin["tokens"]["access_token"]))
    assert resp.status_code == 404


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_profile_update_rejects_oversized_fields(client, tokens):
    resp = client.put(
        "/api/v1/auth/profile",
        json={"email": "a@b.com", "first_name": "x" * 256, "phone_number": "1" * 40},
        headers=bearer(tokens["access_token"]),
    )

    assert resp.status_code == 422
    assert set(resp.get_json()["details"]) == {"first_name", "phone_number"}
