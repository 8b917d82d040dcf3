from datetime import datetime, timedelta

import jwt
import pytest

from codearena import config
from codearena.auth import auth_router, google_oauth
from codearena.auth.security import TokenError, create_access_token, decode_access_token

from conftest import register, run


def test_register_returns_token_and_user(client):
    response = client.post("/api/auth/register", json={
        "email": "New.User@Example.com",
        "password": "secret123",
        "first_name": "New",
        "last_name": "User",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "new.user@example.com"
    assert body["user"]["role"] == "student"
    assert "password_hash" not in body["user"]
    assert "token" in response.cookies


def test_register_duplicate_email(client):
    register(client, "dup@example.com")
    response = client.post("/api/auth/register", json={
        "email": "dup@example.com",
        "password": "secret123",
        "first_name": "A",
        "last_name": "B",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


def test_register_validation_errors_are_listed(client):
    response = client.post("/api/auth/register", json={
        "email": "bad",
        "password": "123",
        "first_name": "A",
        "last_name": "B",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid data"
    fields = {err["field"] for err in body["errors"]}
    assert {"email", "password"} <= fields


@pytest.mark.parametrize("email", ["a@@b..c", "no-domain@", "two words@example.com"])
def test_register_rejects_malformed_email(client, db, email):
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": "secret123",
        "first_name": "A",
        "last_name": "B",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid data"
    assert run(db.users.count_documents({})) == 0


def test_concurrent_register_with_same_email(client, db, monkeypatch):
    run(db.users.create_index("email", unique=True))
    register(client, "race@example.com")

    async def not_found_yet(db, email):
        return None

    monkeypatch.setattr(auth_router, "find_user_by_email", not_found_yet)

    response = client.post("/api/auth/register", json={
        "email": "race@example.com",
        "password": "secret123",
        "first_name": "A",
        "last_name": "B",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"
    assert run(db.users.count_documents({"email": "race@example.com"})) == 1


def test_password_is_stored_hashed(client, db):
    register(client, "hash@example.com", password="secret123")
    user = run(db.users.find_one({"email": "hash@example.com"}))
    assert user["password_hash"] != "secret123"


def test_login(client):
    register(client, "login@example.com", password="secret123")

    ok = client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "login@example.com"

    bad = client.post("/api/auth/login", json={"email": "login@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401
    assert bad.json()["message"] == "Invalid credentials"


def test_current_user_requires_token(client):
    response = client.get("/api/auth/user")
    assert response.status_code == 401
    assert "message" in response.json()


def test_current_user_with_bearer(client, student):
    response = client.get("/api/auth/user", headers=student)
    assert response.status_code == 200
    assert response.json()["email"] == "student@example.com"


def test_current_user_with_cookie(client):
    headers, _ = register(client, "cookie@example.com")
    token = headers["Authorization"].split(" ", 1)[1]

    client.cookies.set("auth_token", token)
    response = client.get("/api/auth/user")
    client.cookies.clear()

    assert response.status_code == 200
    assert response.json()["email"] == "cookie@example.com"


def test_malformed_token_is_401(client):
    response = client.get("/api/auth/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_is_401(client):
    _, user = register(client, "old@example.com")
    token = create_access_token(user["user_id"], user["email"], "student", expires_days=-1)
    response = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_for_unknown_user_is_401(client):
    token = create_access_token("USR_MISSING", "ghost@example.com", "admin")
    response = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_role_is_read_from_storage(client, db):
    headers, _ = register(client, "promoted@example.com")

    assert client.get("/api/admin/analytics", headers=headers).status_code == 403

    run(db.users.update_one({"email": "promoted@example.com"}, {"$set": {"role": "admin"}}))

    # Same token, new role
    assert client.get("/api/admin/analytics", headers=headers).status_code == 200


def test_logout_clears_cookies(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    set_cookie = " ".join(response.headers.get_list("set-cookie"))
    assert "token=" in set_cookie
    assert "auth_token=" in set_cookie


def test_google_callback_requires_code(client):
    response = client.get("/api/auth/google/callback")
    assert response.status_code == 400
    assert response.json()["message"] == "Authorization code not provided"


def test_google_callback_creates_user_and_redirects(client, db, monkeypatch):
    async def fake_exchange(code):
        assert code == "abc"
        return {
            "google_id": "g-123",
            "email": "oauth@example.com",
            "first_name": "O",
            "last_name": "Auth",
            "profile_image_url": None,
        }

    monkeypatch.setattr(google_oauth, "exchange_code", fake_exchange)

    response = client.get("/api/auth/google/callback?code=abc", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"].endswith("/dashboard")
    assert "auth_token=" in response.headers["set-cookie"]

    user = run(db.users.find_one({"email": "oauth@example.com"}))
    assert user["google_id"] == "g-123"
    assert user["role"] == "student"


def test_google_callback_rejects_bad_token(client, monkeypatch):
    async def fake_exchange(code):
        raise google_oauth.GoogleAuthError("ID token audience mismatch")

    monkeypatch.setattr(google_oauth, "exchange_code", fake_exchange)

    response = client.get("/api/auth/google/callback?code=abc", follow_redirects=False)
    assert response.status_code == 401


def test_google_claims_validation(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "client-1")
    claims = {
        "aud": "client-1",
        "iss": "https://accounts.google.com",
        "sub": "42",
        "email": "Someone@Gmail.com",
        "given_name": "Some",
        "family_name": "One",
    }

    profile = google_oauth.validate_id_token_claims(claims)
    assert profile["email"] == "someone@gmail.com"
    assert profile["google_id"] == "42"

    with pytest.raises(google_oauth.GoogleAuthError):
        google_oauth.validate_id_token_claims({**claims, "aud": "other"})
    with pytest.raises(google_oauth.GoogleAuthError):
        google_oauth.validate_id_token_claims({**claims, "iss": "evil.example.com"})


def test_decode_rejects_wrong_signature():
    token = jwt.encode(
        {"sub": "USR_1", "exp": datetime.utcnow() + timedelta(days=1)},
        "some-other-secret",
        algorithm="HS256",
    )
    with pytest.raises(TokenError):
        decode_access_token(token)
