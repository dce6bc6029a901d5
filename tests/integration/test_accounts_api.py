"""
Credential account flows through the HTTP API: registration, email
verification, login sessions, logout and password reset.
"""
import pytest

from byteinit.db import models
from byteinit.utils.feature_flags import refresh_feature_flag_cache
from byteinit.utils.token_crypto import parse_token

PASSWORD = "correct-horse-battery"


def _register(client, email="dana@example.com", username="dana", password=PASSWORD):
    return client.post(
        "/auth/register",
        json={"email": email, "username": username, "password": password, "name": "Dana"},
    )


def _verify(client, db_session, email="dana@example.com"):
    user = db_session.query(models.User).filter(models.User.email == email).one()
    return client.get("/auth/verify", params={"token": user.verification_token, "email": email})


def _login(client, email="dana@example.com", password=PASSWORD):
    return client.post("/auth/login", json={"email": email, "password": password})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def test_register_creates_unverified_user_and_logs_verification_email(client, db_session):
    r = _register(client, email="Dana@Example.com")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "dana@example.com"
    assert body["username"] == "dana"

    user = db_session.query(models.User).filter(models.User.email == "dana@example.com").one()
    assert user.email_verified_at is None
    assert user.verification_token
    assert user.password_hash and user.password_hash.startswith("$argon2id$")

    log = (
        db_session.query(models.EmailNotificationLog)
        .filter(models.EmailNotificationLog.event_type == "verify_email")
        .one()
    )
    assert log.email_address == "dana@example.com"
    # SMTP is not configured in tests
    assert log.status == "failed"


def test_register_rejects_duplicates(client):
    assert _register(client).status_code == 201
    r = _register(client, username="someone_else")
    assert r.status_code == 409
    assert r.json()["detail"] == "Email already registered"
    r = _register(client, email="other@example.com", username="DANA")
    assert r.status_code == 409
    assert r.json()["detail"] == "Username already taken"


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "not-an-email", "username": "dana", "password": PASSWORD},
        {"email": "dana@example.com", "username": "x", "password": PASSWORD},
        {"email": "dana@example.com", "username": "dana", "password": "short"},
    ],
)
def test_register_validates_input(client, payload):
    assert client.post("/auth/register", json=payload).status_code == 422


def test_register_disabled_by_flag(client, monkeypatch):
    monkeypatch.setenv("REGISTRATION_ENABLED", "false")
    refresh_feature_flag_cache()
    r = _register(client)
    assert r.status_code == 403


def test_login_requires_verified_email(client, db_session):
    _register(client)
    assert _login(client).status_code == 403

    r = _verify(client, db_session)
    assert r.status_code == 200
    assert r.json() == {"verified": True, "email": "dana@example.com"}

    r = _login(client)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token"].startswith("bi_sess_")
    assert body["user"]["username"] == "dana"


def test_verify_rejects_unknown_token(client):
    r = client.get("/auth/verify", params={"token": "nope"})
    assert r.status_code == 400


def test_verify_rejects_expired_token(client, db_session):
    from datetime import datetime, timedelta, timezone

    _register(client)
    user = db_session.query(models.User).filter(models.User.email == "dana@example.com").one()
    token = user.verification_token
    user.verification_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()

    r = client.get("/auth/verify", params={"token": token})
    assert r.status_code == 400
    assert r.json()["detail"] == "Verification token has expired"
    db_session.refresh(user)
    assert user.verification_token is None


def test_login_wrong_password(client, db_session):
    _register(client)
    _verify(client, db_session)
    assert _login(client, password="wrong-password").status_code == 401
    assert _login(client, email="nobody@example.com").status_code == 401


def test_bearer_session_lifecycle(client, db_session):
    _register(client)
    _verify(client, db_session)
    token = _login(client).json()["token"]

    r = client.get("/users/me", headers=_bearer(token))
    assert r.status_code == 200
    assert r.json()["email"] == "dana@example.com"

    sessions = client.get("/auth/sessions", headers=_bearer(token)).json()
    assert len(sessions) == 1

    assert client.post("/auth/logout", headers=_bearer(token)).status_code == 204
    assert client.get("/users/me", headers=_bearer(token)).status_code == 401


def test_malformed_bearer_is_rejected(client):
    r = client.get("/users/me", headers=_bearer("garbage"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token format"


def test_revoke_other_session(client, db_session):
    _register(client)
    _verify(client, db_session)
    first = _login(client).json()["token"]
    second = _login(client).json()["token"]

    sessions = client.get("/auth/sessions", headers=_bearer(first)).json()
    assert len(sessions) == 2
    other = next(s for s in sessions if s["token_id"] != parse_token(first).token_id)

    r = client.delete(f"/auth/sessions/{other['id']}", headers=_bearer(first))
    assert r.status_code == 204
    assert client.get("/users/me", headers=_bearer(second)).status_code == 401
    assert client.get("/users/me", headers=_bearer(first)).status_code == 200


def test_forgot_password_does_not_reveal_accounts(client):
    r = client.post("/auth/forgot-password", json={"email": "nobody@example.com"})
    assert r.status_code == 200
    assert "If an account exists" in r.json()["message"]


def test_reset_password_revokes_sessions(client, db_session):
    _register(client)
    _verify(client, db_session)
    token = _login(client).json()["token"]

    assert client.post("/auth/forgot-password", json={"email": "dana@example.com"}).status_code == 200
    user = db_session.query(models.User).filter(models.User.email == "dana@example.com").one()
    reset_token = user.reset_token
    assert reset_token

    assert client.get("/auth/verify-reset-token", params={"token": reset_token}).json() == {"valid": True}

    r = client.post("/auth/reset-password", json={"token": reset_token, "password": "new-password-123"})
    assert r.status_code == 200

    assert client.get("/users/me", headers=_bearer(token)).status_code == 401
    assert _login(client).status_code == 401
    assert _login(client, password="new-password-123").status_code == 200

    r = client.post("/auth/reset-password", json={"token": reset_token, "password": "another-password"})
    assert r.status_code == 400


def test_expired_reset_token_is_rejected(client, db_session):
    from datetime import datetime, timedelta, timezone

    _register(client)
    _verify(client, db_session)
    assert client.post("/auth/forgot-password", json={"email": "dana@example.com"}).status_code == 200
    user = db_session.query(models.User).filter(models.User.email == "dana@example.com").one()
    reset_token = user.reset_token
    password_hash = user.password_hash
    user.reset_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()

    assert client.get("/auth/verify-reset-token", params={"token": reset_token}).json() == {"valid": False}

    r = client.post("/auth/reset-password", json={"token": reset_token, "password": "new-password-123"})
    assert r.status_code == 400
    db_session.refresh(user)
    assert user.password_hash == password_hash
    assert _login(client).status_code == 200
