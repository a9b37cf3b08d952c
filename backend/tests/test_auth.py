# backend/tests/test_auth.py
from __future__ import annotations

from app.models import ROLE_MASTER

MASTER = {"X-User-Email": "master@test.local", "X-User-Role": ROLE_MASTER}

SIGN_UP = {
    "first_name": "Minh",
    "last_name": "Trần",
    "email": "minh@test.local",
    "phone": "0987654321",
    "password": "123456",
    "confirm_password": "123456",
}


def _login(client, username: str, password: str = "123456"):
    return client.post("/api/auth/login", json={"username": username, "password": password})


def test_sign_up_then_login_by_phone_or_email(client):
    r = client.post("/api/auth/sign-up", json=SIGN_UP)
    assert r.status_code == 200
    assert r.json()["roles"] == "customer"

    for username in ("0987654321", "minh@test.local"):
        r = _login(client, username)
        assert r.status_code == 200
        token = r.json()["access_token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "minh@test.local"


def test_duplicate_sign_up_is_refused(client):
    client.post("/api/auth/sign-up", json=SIGN_UP)
    r = client.post("/api/auth/sign-up", json=SIGN_UP)
    assert r.status_code == 400
    assert r.json() == {"detail": "Email đã tồn tại"}


def test_mismatched_passwords(client):
    r = client.post("/api/auth/sign-up", json={**SIGN_UP, "confirm_password": "654321"})
    assert r.status_code == 400
    assert r.json() == {"detail": "Mật khẩu không trùng nhau"}


def test_bad_credentials_and_tampered_token(client):
    client.post("/api/auth/sign-up", json=SIGN_UP)
    assert _login(client, "minh@test.local", "wrong-pass").status_code == 401

    token = _login(client, "minh@test.local").json()["access_token"]
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token[:-2]}xx"})
    assert r.status_code == 401


def test_locked_account_cannot_log_in(client):
    user_id = client.post("/api/auth/sign-up", json=SIGN_UP).json()["id"]

    r = client.put(f"/api/users/{user_id}/lock", headers=MASTER)
    assert r.json()["is_locked"] is True
    assert _login(client, "0987654321").status_code == 403
