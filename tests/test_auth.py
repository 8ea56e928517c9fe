"""
Registration, login, password flows and token handling.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from assettag.auth.security import hash_reset_token, verify_password, get_password_hash
from assettag.config import settings
from assettag.models.models import User
from assettag.services.scheduling import utcnow
from conftest import make_user, auth_headers


def test_register_returns_token_and_user(client, db):
    resp = client.post("/api/auth/register", json={"name": "New Person", "email": "New@Example.com", "password": "pass123"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "User"
    assert "passwordHash" not in body["user"]
    assert "password_hash" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "New Person"


def test_register_rejects_duplicate_and_short_password(client, db):
    make_user(db, email="taken@example.com")
    dup = client.post("/api/auth/register", json={"name": "X", "email": "taken@example.com", "password": "pass123"})
    assert dup.status_code == 400
    short = client.post("/api/auth/register", json={"name": "X", "email": "x@example.com", "password": "123"})
    assert short.status_code == 422


def test_login_success_updates_last_login(client, db):
    user = make_user(db, email="login@example.com", password="hunter22")
    resp = client.post("/api/auth/login", json={"email": "LOGIN@example.com", "password": "hunter22"})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == str(user.id)
    db.expire_all()
    assert db.query(User).filter(User.id == user.id).one().last_login is not None


def test_login_failures(client, db):
    make_user(db, email="login@example.com", password="hunter22")
    make_user(db, email="off@example.com", password="hunter22", status="Inactive")
    assert client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "hunter22"}).status_code == 401
    inactive = client.post("/api/auth/login", json={"email": "off@example.com", "password": "hunter22"})
    assert inactive.status_code == 403


def test_protected_route_requires_valid_token(client, db):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401

    user = make_user(db)
    expired = jwt.encode(
        {"sub": str(user.id), "exp": int((datetime.now(timezone.utc) - timedelta(minutes=1)).timestamp())},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401


def test_deactivated_user_token_is_refused(client, db):
    user = make_user(db)
    headers = auth_headers(user)
    user.status = "Inactive"
    db.commit()
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 403
    assert "deactivated" in resp.json()["detail"]


def test_update_password(client, db):
    user = make_user(db, password="oldpass1")
    headers = auth_headers(user)
    wrong = client.put("/api/auth/update-password", json={"currentPassword": "bad", "newPassword": "newpass1"}, headers=headers)
    assert wrong.status_code == 401
    ok = client.put("/api/auth/update-password", json={"currentPassword": "oldpass1", "newPassword": "newpass1"}, headers=headers)
    assert ok.status_code == 200
    assert client.post("/api/auth/login", json={"email": user.email, "password": "newpass1"}).status_code == 200


def test_forgot_and_reset_password(client, db):
    user = make_user(db, email="reset@example.com", password="before1")
    resp = client.post("/api/auth/forgot-password", json={"email": "reset@example.com"})
    assert resp.status_code == 200
    raw = resp.json()["resetToken"]
    assert raw

    db.expire_all()
    stored = db.query(User).filter(User.id == user.id).one()
    assert stored.reset_password_token == hash_reset_token(raw)

    done = client.put(f"/api/auth/reset-password/{raw}", json={"password": "after12"})
    assert done.status_code == 200
    assert done.json()["token"]
    assert client.post("/api/auth/login", json={"email": "reset@example.com", "password": "after12"}).status_code == 200
    # token is single use
    assert client.put(f"/api/auth/reset-password/{raw}", json={"password": "again12"}).status_code == 400


def test_forgot_password_does_not_reveal_unknown_email(client):
    resp = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert resp.status_code == 200
    assert resp.json()["resetToken"] is None


def test_expired_reset_token_is_rejected(client, db):
    user = make_user(db)
    user.reset_password_token = hash_reset_token("abc")
    user.reset_password_expire = utcnow() - timedelta(seconds=1)
    db.commit()
    assert client.put("/api/auth/reset-password/abc", json={"password": "whatever1"}).status_code == 400


def test_legacy_bcrypt_hash_verifies():
    legacy = bcrypt.hashpw(b"legacy-pass", bcrypt.gensalt(rounds=4)).decode().replace("$2b$", "$2a$")
    assert verify_password("legacy-pass", legacy)
    assert not verify_password("wrong", legacy)
    assert verify_password("modern", get_password_hash("modern"))


def test_logout(client, user_headers):
    resp = client.post("/api/auth/logout", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
