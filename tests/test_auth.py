import uuid

from taskdesk import config
from taskdesk.models.user import User
from taskdesk.utils.auth import create_token, decode_token

from conftest import PASSWORD, auth, register_user


def _email():
    return f"test_{uuid.uuid4().hex}@example.com"


def test_register_and_login_success(client):
    email = _email()

    r = client.post("/api/register", json={"name": "Ann", "email": email, "password": PASSWORD})
    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "success"
    assert body["error"] is None
    user = body["data"]["user"]
    assert user["email"] == email
    assert user["name"] == "Ann"
    assert user["role"] == "USER"
    assert "password" not in user
    assert body["data"]["token"]

    r2 = client.post("/api/login", json={"email": email, "password": PASSWORD})
    assert r2.status_code == 200
    data2 = r2.json()["data"]
    assert data2["user"]["id"] == user["id"]
    assert data2["token"] != body["data"]["token"]


def test_password_is_stored_hashed(client, db):
    email = _email()
    register_user(client, email=email)
    stored = db.query(User).filter(User.email == email).one()
    assert stored.password != PASSWORD
    assert stored.password.startswith("$2")


def test_register_duplicate_email_rejected(client, db):
    email = _email()
    register_user(client, email=email)

    r = client.post("/api/register", json={"name": "Other", "email": email, "password": "OtherPass123"})
    assert r.status_code == 422
    body = r.json()
    assert body["status"] == "fail"
    assert "taken" in body["error"]["email"][0]
    assert db.query(User).filter(User.email == email).count() == 1


def test_password_minimum_length(client):
    r = client.post("/api/register", json={"name": "A", "email": _email(), "password": "a" * 7})
    assert r.status_code == 422
    assert "password" in r.json()["error"]

    r = client.post("/api/register", json={"name": "A", "email": _email(), "password": "a" * 8})
    assert r.status_code == 201


def test_password_byte_limit_enforced_by_schema(client, db):
    email = _email()
    r = client.post("/api/register", json={"name": "A", "email": email, "password": "é" * 36 + "a"})
    assert r.status_code == 422
    assert "72 bytes" in r.json()["error"]["password"][0]
    assert db.query(User).filter(User.email == email).count() == 0

    # 36 two-byte characters is exactly at the bcrypt limit
    r = client.post("/api/register", json={"name": "A", "email": email, "password": "é" * 36})
    assert r.status_code == 201


def test_register_validation_errors(client):
    r = client.post("/api/register", json={"name": "A", "email": _email(), "password": "a" * 100})
    assert r.status_code == 422
    text = r.text.lower()
    assert "password" in text and ("too long" in text or "72" in text)

    r = client.post("/api/register", json={"name": "A", "email": "not_an_email", "password": PASSWORD})
    assert r.status_code == 422
    assert "email" in r.json()["error"]

    r = client.post("/api/register", json={"name": "x" * 256, "email": _email(), "password": PASSWORD})
    assert r.status_code == 422
    assert "name" in r.json()["error"]

    r = client.post("/api/register", json={"password": PASSWORD})
    assert r.status_code == 422
    errors = r.json()["error"]
    assert set(errors) >= {"name", "email"}


def test_register_confirmation_must_match(client):
    payload = {"name": "A", "email": _email(), "password": PASSWORD, "password_confirmation": "password2"}
    r = client.post("/api/register", json=payload)
    assert r.status_code == 422
    assert "password_confirmation" in r.json()["error"]

    payload["password_confirmation"] = PASSWORD
    r = client.post("/api/register", json=payload)
    assert r.status_code == 201


def test_login_does_not_reveal_unknown_email(client):
    email = _email()
    register_user(client, email=email)

    wrong_password = client.post("/api/login", json={"email": email, "password": "WrongPass123"})
    unknown_email = client.post("/api/login", json={"email": _email(), "password": "WrongPass123"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["message"] == "Unauthorized"
    assert wrong_password.json()["error"] == "Invalid Credentials"


def test_login_with_too_long_password_fails(client):
    email = _email()
    register_user(client, email=email)
    r = client.post("/api/login", json={"email": email, "password": "a" * 100})
    assert r.status_code == 401


def test_login_requires_both_fields(client):
    r = client.post("/api/login", json={"email": _email()})
    assert r.status_code == 422
    assert "password" in r.json()["error"]


def test_token_roundtrip_and_expiry(client, monkeypatch):
    user, _ = register_user(client)
    assert decode_token(create_token(user["id"])) == user["id"]

    monkeypatch.setattr(config, "ACCESS_TOKEN_EXPIRE_MINUTES", -1)
    expired = create_token(user["id"])
    r = client.get("/api/tasks", headers=auth(expired))
    assert r.status_code == 401
    assert "expired" in r.json()["error"].lower()


def test_protected_routes_require_valid_token(client):
    r = client.get("/api/tasks")
    assert r.status_code == 401
    assert r.json()["error"] == "Missing token"

    r = client.get("/api/tasks", headers=auth("invalid"))
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid token"

    # token query parameter is accepted as a fallback
    _, token = register_user(client)
    r = client.get(f"/api/tasks?token={token}")
    assert r.status_code == 200


def test_token_for_deleted_user_rejected(client, db):
    user, token = register_user(client)
    db.query(User).filter(User.id == user["id"]).delete()
    db.commit()
    r = client.get("/api/tasks", headers=auth(token))
    assert r.status_code == 401
