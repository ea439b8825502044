from datetime import timedelta

from jose import jwt

from app.security import avatar_for_name, create_access_token, is_valid_email, AVATARS
from database import USERS
from tests.conftest import register


def test_register_returns_token_and_public_user(client):
    resp = register(client, name="  A  ", email="A@X.com", password="123456")

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["user"]["email"] == "a@x.com"
    assert body["data"]["user"]["name"] == "A"
    assert body["data"]["user"]["role"] == "user"
    assert "password_hash" not in body["data"]["user"]


def test_register_then_login_token_decodes_to_email(client, settings):
    register(client, name="A", email="a@x.com", password="123456")

    resp = client.post("/api/auth/login", json={"email": "a@x.com", "password": "123456"})

    assert resp.status_code == 200
    claims = jwt.decode(resp.json()["data"]["token"], settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert claims["email"] == "a@x.com"
    assert claims["name"] == "A"
    assert claims["role"] == "user"
    assert "exp" in claims


def test_register_duplicate_email_is_conflict(client, db):
    register(client, email="dup@example.com")

    resp = register(client, email="DUP@example.com ")

    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "User with this email already exists"}
    assert db[USERS].count_documents({"email": "dup@example.com"}) == 1


def test_register_validation(client):
    missing = client.post("/api/auth/register", json={"email": "x@example.com", "password": "123456"})
    bad_email = register(client, email="not-an-email")
    short_password = register(client, password="12345")

    assert missing.status_code == 400
    assert missing.json()["message"] == "Name, email, and password are required"
    assert bad_email.status_code == 400
    assert bad_email.json()["message"] == "Please enter a valid email address"
    assert short_password.status_code == 400
    assert short_password.json()["message"] == "Password must be at least 6 characters long"


def test_login_failures_are_indistinguishable(client):
    register(client, email="jane@example.com", password="secret123")

    wrong_password = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "nope123"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["message"] == "Invalid email or password"


def test_login_requires_both_fields(client):
    resp = client.post("/api/auth/login", json={"email": "jane@example.com"})

    assert resp.status_code == 400


def test_login_updates_last_login(client, db):
    register(client)
    assert db[USERS].find_one({"email": "jane@example.com"})["last_login"] is None

    client.post("/api/auth/login", json={"email": "jane@example.com", "password": "secret123"})

    assert db[USERS].find_one({"email": "jane@example.com"})["last_login"] is not None


def test_deactivated_account_cannot_login(client, db):
    register(client)
    db[USERS].update_one({"email": "jane@example.com"}, {"$set": {"is_active": False}})

    resp = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "secret123"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Account is deactivated. Please contact support."


def test_demo_login_provisions_admin_once(client, db):
    first = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password"})
    second = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password"})

    assert first.status_code == 200
    assert first.json()["message"] == "Demo login successful"
    assert first.json()["data"]["user"]["role"] == "admin"
    assert second.json()["data"]["user"]["id"] == first.json()["data"]["user"]["id"]
    assert db[USERS].count_documents({"email": "admin@example.com"}) == 1


def test_protected_route_without_token_is_401(client):
    resp = client.get("/api/auth/validate")

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Access token required"}


def test_protected_route_with_bad_token_is_403(client):
    resp = client.get("/api/auth/validate", headers={"Authorization": "Bearer not.a.jwt"})

    assert resp.status_code == 403
    assert resp.json()["message"] == "Invalid or expired token"


def test_expired_token_is_403(client, settings, db):
    register(client)
    user = db[USERS].find_one({"email": "jane@example.com"})
    token = create_access_token({"id": str(user["_id"]), "email": user["email"]}, settings,
                                expires_delta=timedelta(seconds=-10))

    resp = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403


def test_token_of_deactivated_user_is_401(client, db, auth_headers):
    db[USERS].update_one({"email": "jane@example.com"}, {"$set": {"is_active": False}})

    resp = client.get("/api/auth/validate", headers=auth_headers)

    assert resp.status_code == 401
    assert resp.json()["message"] == "User not found or inactive"


def test_validate_and_profile(client, auth_headers):
    validate = client.get("/api/auth/validate", headers=auth_headers)
    profile = client.get("/api/auth/profile", headers=auth_headers)

    assert validate.status_code == 200
    assert validate.json()["data"]["email"] == "jane@example.com"
    data = profile.json()["data"]
    assert data["name"] == "Jane Doe"
    assert data["createdAt"] is not None
    assert "lastLogin" in data


def test_update_profile(client, auth_headers):
    resp = client.put("/api/auth/profile", headers=auth_headers,
                      json={"name": "Jane Smith", "email": "Jane.Smith@example.com"})

    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Jane Smith"
    assert resp.json()["data"]["email"] == "jane.smith@example.com"


def test_update_profile_email_taken(client, auth_headers):
    register(client, name="Bob", email="bob@example.com")

    resp = client.put("/api/auth/profile", headers=auth_headers, json={"name": "Jane", "email": "bob@example.com"})

    assert resp.status_code == 409


def test_update_profile_requires_fields(client, auth_headers):
    resp = client.put("/api/auth/profile", headers=auth_headers, json={"name": "Jane"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Name and email are required"


def test_change_password(client, auth_headers):
    wrong = client.put("/api/auth/change-password", headers=auth_headers,
                       json={"currentPassword": "nope123", "newPassword": "newsecret"})
    short = client.put("/api/auth/change-password", headers=auth_headers,
                       json={"currentPassword": "secret123", "newPassword": "123"})
    changed = client.put("/api/auth/change-password", headers=auth_headers,
                         json={"currentPassword": "secret123", "newPassword": "newsecret"})

    assert wrong.status_code == 401
    assert short.status_code == 400
    assert changed.status_code == 200

    old_login = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "secret123"})
    new_login = client.post("/api/auth/login", json={"email": "jane@example.com", "password": "newsecret"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_avatar_is_stable_per_name():
    assert avatar_for_name("Jane Doe") == avatar_for_name("Jane Doe")
    assert avatar_for_name("Jane Doe") in AVATARS
    assert avatar_for_name("") == AVATARS[0]


def test_display_name_email_is_rejected(client, auth_headers, db):
    resp = client.put("/api/auth/profile", headers=auth_headers,
                      json={"name": "Jane", "email": "Jane <jane2@example.com>"})
    registered = register(client, email="Bob <bob@example.com>")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Please enter a valid email address"
    assert registered.status_code == 400
    assert db[USERS].find_one({"email": "jane@example.com"}) is not None
    assert is_valid_email("Jane.Doe@Example.COM")
