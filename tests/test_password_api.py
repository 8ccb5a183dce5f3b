"""Tests for the password recovery endpoints."""

import pytest


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tokens(client):
    resp = client.post("/api/v1/auth/signup", json={"email": "real@x.com", "password": "password1"})
    assert resp.status_code == 201
    return resp.get_json()["data"]["tokens"]


def test_forgot_password_same_answer_for_known_and_unknown(client, tokens, notifier):
    known = client.post("/api/v1/password/forgot", json={"email": "real@x.com"})
    unknown = client.post("/api/v1/password/forgot", json={"email": "nonexistent@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json()
    assert [m["email"] for m in notifier.sent] == ["real@x.com"]


def test_forgot_password_validates_email(client):
    resp = client.post("/api/v1/password/forgot", json={"email": "nope"})
    assert resp.status_code == 422


def test_validate_reset_token(client, tokens, notifier):
    client.post("/api/v1/password/forgot", json={"email": "real@x.com"})
    token = notifier.sent[0]["token"]

    resp = client.get("/api/v1/password/validate-reset-token", query_string={"token": token})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["email"] == "real@x.com"

    bad = client.get("/api/v1/password/validate-reset-token", query_string={"token": "0" * 64})
    assert bad.status_code == 400
    assert bad.get_json()["message"] == "Invalid or expired reset token"

    missing = client.get("/api/v1/password/validate-reset-token")
    assert missing.status_code == 400


def test_reset_password_flow(client, tokens, notifier):
    client.post("/api/v1/password/forgot", json={"email": "real@x.com"})
    token = notifier.sent[0]["token"]

    resp = client.post("/api/v1/password/reset", json={"token": token, "new_password": "brand-new-pass"})
    assert resp.status_code == 200

    replay = client.post("/api/v1/password/reset", json={"token": token, "new_password": "another-pass"})
    assert replay.status_code == 400

    refresh = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refresh.status_code == 401

    old_login = client.post("/api/v1/auth/login", json={"email": "real@x.com", "password": "password1"})
    new_login = client.post("/api/v1/auth/login", json={"email": "real@x.com", "password": "brand-new-pass"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_reset_password_policy(client, tokens, notifier):
    client.post("/api/v1/password/forgot", json={"email": "real@x.com"})

    resp = client.post(
        "/api/v1/password/reset", json={"token": notifier.sent[0]["token"], "new_password": "short"}
    )
    assert resp.status_code == 422


def test_change_password_wrong_current(client, tokens):
    resp = client.post(
        "/api/v1/password/change",
        json={"current_password": "not-it-at-all", "new_password": "brand-new-pass"},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "INVALID_CREDENTIALS"

    still_works = client.post("/api/v1/auth/login", json={"email": "real@x.com", "password": "password1"})
    assert still_works.status_code == 200


def test_change_password(client, tokens):
    resp = client.post(
        "/api/v1/password/change",
        json={"current_password": "password1", "new_password": "brand-new-pass"},
        headers=bearer(tokens["access_token"]),
    )
    assert resp.status_code == 200

    refresh = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refresh.status_code == 401
    login = client.post("/api/v1/auth/login", json={"email": "real@x.com", "password": "brand-new-pass"})
    assert login.status_code == 200


def test_change_password_requires_auth(client):
    resp = client.post(
        "/api/v1/password/change",
        json={"current_password": "password1", "new_password": "brand-new-pass"},
    )
    assert resp.status_code == 401
