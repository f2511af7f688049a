"""Tests for registration and authentication endpoints."""
from fastapi.testclient import TestClient

from regportal.config import settings
from regportal.core.tokens import BEARER_PREFIX, RESET_PREFIX, token_issuer

PASSWORD = "Abcdef1!"


def login(client: TestClient, username: str = "alice01", password: str = PASSWORD):
    return client.post("/login", json={"username": username, "password": password})


def test_register_user(client: TestClient, registration_payload):
    """Test user registration."""
    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["userId"] == 1


def test_register_missing_fields(client: TestClient, registration_payload):
    """Test registration with missing fields."""
    del registration_payload["city"]
    registration_payload["phone"] = ""
    registration_payload["terms"] = False

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["errorCode"] == "VALIDATION_FAILED"
    assert set(data["details"]["missingFields"]) == {"city", "phone", "terms"}


def test_register_password_mismatch(client: TestClient, registration_payload):
    registration_payload["confirmPassword"] = "Abcdef1?"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert response.json()["error"] == "Passwords do not match"


def test_register_weak_password(client: TestClient, registration_payload):
    registration_payload["password"] = registration_payload["confirmPassword"] = "password"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert "password" in response.json()["details"]["errors"]


def test_register_underage(client: TestClient, registration_payload):
    registration_payload["dateOfBirth"] = "2020-01-01"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert "dateOfBirth" in response.json()["details"]["errors"]


def test_register_invalid_username(client: TestClient, registration_payload):
    registration_payload["username"] = "al!"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert "username" in response.json()["details"]["fields"]


def test_register_malformed_email(client: TestClient, registration_payload):
    registration_payload["email"] = "not-an-email"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert response.json()["errorCode"] == "VALIDATION_FAILED"


def test_register_username_trailing_newline(client: TestClient, registration_payload):
    registration_payload["username"] = "alice01\n"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert "username" in response.json()["details"]["fields"]
    assert client.get("/registrations").json()["count"] == 0


def test_register_name_and_phone_trailing_newline(client: TestClient, registration_payload):
    registration_payload.update(firstName="Alice\n", phone="5551234567\n")

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 400
    assert set(response.json()["details"]["errors"]) == {"firstName", "phone"}


def test_mixed_case_email_is_kept_as_registered(client: TestClient, registration_payload):
    """The address works everywhere exactly as it was typed at registration."""
    email = "Alice@Example.COM"
    registration_payload["email"] = email
    user_id = client.post("/submit", json=registration_payload).json()["userId"]

    assert client.get("/registrations").json()["registrations"][0]["email"] == email

    response = login(client, username=email)
    assert response.status_code == 200
    assert response.json()["user"]["id"] == user_id

    forgot = client.post("/forgot-password", json={"email": email})
    assert forgot.status_code == 200
    assert forgot.json()["userId"] == user_id

    response = client.post(
        "/reset-password",
        json={"email": email, "resetToken": forgot.json()["resetToken"], "newPassword": "Newpass1!"}
    )
    assert response.status_code == 200
    assert login(client, username=email, password="Newpass1!").status_code == 200


def test_register_duplicate_email(client: TestClient, registered_user, registration_payload):
    """Test registration with duplicate email."""
    registration_payload["username"] = "alice02"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 409
    data = response.json()
    assert data["errorCode"] == "DUPLICATE_EMAIL"
    assert data["error"] == "Email already registered"


def test_register_duplicate_username(client: TestClient, registered_user, registration_payload):
    registration_payload["email"] = "other@x.com"

    response = client.post("/submit", json=registration_payload)

    assert response.status_code == 409
    assert response.json()["errorCode"] == "DUPLICATE_USERNAME"
    assert client.get("/registrations").json()["count"] == 1


def test_login_success(client: TestClient, registered_user):
    """Test successful login."""
    response = login(client)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["tokenType"] == "bearer"
    assert token_issuer.parse_user_id(data["token"], BEARER_PREFIX) == registered_user
    assert data["user"]["username"] == "alice01"
    assert data["user"]["lastLogin"] is not None
    assert "passwordHash" not in data["user"]
    assert "password" not in data["user"]


def test_login_with_email(client: TestClient, registered_user):
    response = login(client, username="a@x.com")

    assert response.status_code == 200
    assert response.json()["user"]["id"] == registered_user


def test_login_remember_me(client: TestClient, registered_user):
    response = client.post(
        "/login",
        json={"username": "alice01", "password": PASSWORD, "rememberMe": True}
    )

    assert response.status_code == 200
    assert response.json()["expiresIn"] == settings.auth.remember_me_expire_days * 86400


def test_login_wrong_password(client: TestClient, registered_user):
    """Test login with wrong password."""
    response = login(client, password="wrong")

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid username or password"

    registrations = client.get("/registrations").json()["registrations"]
    assert registrations[0]["lastLogin"] is None


def test_login_nonexistent_user(client: TestClient, registered_user):
    """Unknown users get the same answer as wrong passwords."""
    unknown = login(client, username="nobody")
    wrong = login(client, password="wrong")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["error"] == wrong.json()["error"]


def test_login_missing_fields(client: TestClient):
    response = client.post("/login", json={"username": "alice01"})

    assert response.status_code == 400
    assert response.json()["details"]["fields"] == ["password"]


def test_login_attempts_are_recorded(client: TestClient, registered_user):
    assert login(client, password="wrong").status_code == 401
    token = login(client).json()["token"]

    response = client.get(
        "/login-history",
        headers={"Authorization": f"Bearer {token}", "User-Agent": "pytest"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [attempt["success"] for attempt in data["attempts"]] == [True, False]


def test_login_history_limit(client: TestClient, auth_headers):
    login(client, password="wrong")

    response = client.get("/login-history?limit=1", headers=auth_headers)

    assert response.json()["count"] == 1


def test_logout(client: TestClient):
    response = client.post("/logout")

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_change_password(client: TestClient, auth_headers):
    """Test changing password."""
    response = client.post(
        "/change-password",
        headers=auth_headers,
        json={"currentPassword": PASSWORD, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert login(client).status_code == 401
    assert login(client, password="Newpass1!").status_code == 200


def test_change_password_wrong_current(client: TestClient, auth_headers):
    """Test changing password with wrong current password."""
    response = client.post(
        "/change-password",
        headers=auth_headers,
        json={"currentPassword": "wrongpassword", "newPassword": "Newpass1!"}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Current password is incorrect"
    assert login(client).status_code == 200


def test_change_password_without_token(client: TestClient, registered_user):
    response = client.post(
        "/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_change_password_rejects_reset_token(client: TestClient, registered_user):
    reset_token = token_issuer.issue_reset_token(registered_user)

    response = client.post(
        "/change-password",
        headers={"Authorization": f"Bearer {reset_token}"},
        json={"currentPassword": PASSWORD, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


def test_change_password_unknown_user(client: TestClient, registered_user):
    token = token_issuer.issue_bearer_token(999)

    response = client.post(
        "/change-password",
        headers={"Authorization": f"Bearer {token}"},
        json={"currentPassword": PASSWORD, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 401
    assert response.json()["error"] == "User not found"


def test_change_password_weak_new_password(client: TestClient, auth_headers):
    response = client.post(
        "/change-password",
        headers=auth_headers,
        json={"currentPassword": PASSWORD, "newPassword": "short"}
    )

    assert response.status_code == 400
    assert login(client).status_code == 200


def test_forgot_password(client: TestClient, registered_user):
    response = client.post("/forgot-password", json={"email": "a@x.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["userId"] == registered_user
    assert token_issuer.parse_user_id(data["resetToken"], RESET_PREFIX) == registered_user


def test_forgot_password_unknown_email(client: TestClient, registered_user):
    response = client.post("/forgot-password", json={"email": "nobody@x.com"})

    assert response.status_code == 400
    assert response.json()["errorCode"] == "NOT_FOUND"


def test_forgot_password_requires_email(client: TestClient):
    response = client.post("/forgot-password", json={})

    assert response.status_code == 400
    assert response.json()["details"]["fields"] == ["email"]


def test_forgot_password_out_of_band(client: TestClient, registered_user, monkeypatch):
    monkeypatch.setattr(settings.auth, "reset_token_in_response", False)

    response = client.post("/forgot-password", json={"email": "a@x.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert "resetToken" not in data
    assert "userId" not in data


def test_reset_password(client: TestClient, registered_user):
    reset_token = client.post(
        "/forgot-password", json={"email": "a@x.com"}
    ).json()["resetToken"]

    response = client.post(
        "/reset-password",
        json={"email": "a@x.com", "resetToken": reset_token, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 200
    assert login(client, password="Newpass1!").status_code == 200


def test_reset_password_token_for_other_user(client: TestClient, registered_user):
    response = client.post(
        "/reset-password",
        json={
            "email": "a@x.com",
            "resetToken": token_issuer.issue_reset_token(registered_user + 1),
            "newPassword": "Newpass1!",
        }
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid or expired reset token"
    assert login(client).status_code == 200


def test_reset_password_rejects_bearer_token(client: TestClient, registered_user):
    bearer = login(client).json()["token"]

    response = client.post(
        "/reset-password",
        json={"email": "a@x.com", "resetToken": bearer, "newPassword": "Newpass1!"}
    )

    assert response.status_code == 401


def test_reset_password_unknown_email(client: TestClient, registered_user):
    response = client.post(
        "/reset-password",
        json={
            "email": "nobody@x.com",
            "resetToken": token_issuer.issue_reset_token(registered_user),
            "newPassword": "Newpass1!",
        }
    )

    assert response.status_code == 400


def test_reset_password_missing_fields(client: TestClient):
    response = client.post("/reset-password", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert response.json()["details"]["fields"] == ["resetToken", "newPassword"]
