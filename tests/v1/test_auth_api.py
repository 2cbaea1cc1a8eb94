"""Tests for authentication endpoints."""

from fastapi import status

SIGNUP = "/api/v1/auth/signup"
LOGIN = "/api/v1/auth/login"


def test_signup_login_and_session(client, test_password) -> None:
    r = client.post(
        SIGNUP,
        json={
            "email": "fresh@example.com",
            "password": test_password,
            "confirm_password": test_password,
            "display_name": "Fresh Reader",
        },
    )
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["token_type"] == "bearer"

    r = client.post(LOGIN, json={"email": "fresh@example.com", "password": test_password})
    assert r.status_code == status.HTTP_200_OK
    token = r.json()["access_token"]

    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["email"] == "fresh@example.com"
    assert data["display_name"] == "Fresh Reader"
    assert data["role"] == "user"
    assert not data["is_admin"] and not data["is_owner"]


def test_signup_rejects_weak_password(client) -> None:
    r = client.post(
        SIGNUP,
        json={
            "email": "weak@example.com",
            "password": "password",
            "confirm_password": "password",
            "display_name": "Weak",
        },
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "Password does not meet requirements" in r.json()["detail"]


def test_login_with_wrong_password(client, reader) -> None:
    r = client.post(LOGIN, json={"email": reader.email, "password": "N0pe!nope"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_session_reports_owner_flags(client, owner_headers) -> None:
    data = client.get("/api/v1/auth/me", headers=owner_headers).json()
    assert data["role"] == "owner"
    assert data["is_admin"] and data["is_owner"]


def test_invalid_token_is_rejected(client) -> None:
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_password_strength_checklist(client) -> None:
    r = client.post("/api/v1/auth/password-strength", json={"password": "abc"})
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["is_strong"] is False
    assert data["label"] == "Weak"
    met = {item["id"]: item["met"] for item in data["requirements"]}
    assert met == {
        "length": False,
        "uppercase": False,
        "lowercase": True,
        "number": False,
        "special": False,
    }

    data = client.post(
        "/api/v1/auth/password-strength", json={"password": "Abcdef1!"}
    ).json()
    assert data["is_strong"] is True
    assert data["score"] == 100


def test_signup_rejects_malformed_email(client, test_password) -> None:
    r = client.post(
        SIGNUP,
        json={
            "email": "reader@b..c",
            "password": test_password,
            "confirm_password": test_password,
            "display_name": "Nobody",
        },
    )
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
