"""Tests for self-service profile endpoints."""

from fastapi import status

from unfiltered_voice.models import Comment, User
from unfiltered_voice.models.comment import DELETED_USER_NAME

ME = "/api/v1/users/me"


def test_read_and_update_profile(client, reader_headers) -> None:
    r = client.get(ME, headers=reader_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["display_name"] == "Regular Reader"
    assert r.json()["email_notifications_enabled"] is True

    r = client.patch(ME, json={"display_name": "Renamed"}, headers=reader_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["display_name"] == "Renamed"


def test_blank_display_name_rejected(client, reader_headers) -> None:
    r = client.patch(ME, json={"display_name": "   "}, headers=reader_headers)
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_profile_requires_token(client) -> None:
    assert client.get(ME).status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_unsubscribe_and_resubscribe(client, reader_headers) -> None:
    r = client.post(f"{ME}/unsubscribe", headers=reader_headers)
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["email_notifications_enabled"] is False

    r = client.post(f"{ME}/resubscribe", headers=reader_headers)
    assert r.json()["email_notifications_enabled"] is True


def test_staff_cannot_unsubscribe(client, admin_headers) -> None:
    r = client.post(f"{ME}/unsubscribe", headers=admin_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_delete_account_keeps_comments(client, db_session, reader, reader_headers, published_post) -> None:
    comment_id = client.post(
        "/api/v1/comments",
        json={"post_id": published_post.id, "message": "Still here"},
        headers=reader_headers,
    ).json()["id"]

    r = client.delete(ME, headers=reader_headers)
    assert r.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(User, reader.id) is None
    comment = db_session.get(Comment, comment_id)
    assert comment.user_id is None
    assert comment.display_name == DELETED_USER_NAME
    assert comment.message == "Still here"

    assert client.get(ME, headers=reader_headers).status_code == status.HTTP_401_UNAUTHORIZED


def test_change_password(client, reader, reader_headers, test_password) -> None:
    new_password = "Fresh!Passw0rd"
    r = client.put(
        f"{ME}/password",
        json={"password": new_password, "confirm_password": new_password},
        headers=reader_headers,
    )
    assert r.status_code == status.HTTP_200_OK

    login = "/api/v1/auth/login"
    assert client.post(login, json={"email": reader.email, "password": new_password}).status_code == status.HTTP_200_OK
    r = client.post(login, json={"email": reader.email, "password": test_password})
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


def test_change_password_rejects_weak_and_mismatched(client, reader_headers) -> None:
    r = client.put(
        f"{ME}/password",
        json={"password": "short", "confirm_password": "short"},
        headers=reader_headers,
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert "Password does not meet requirements" in r.json()["detail"]

    r = client.put(
        f"{ME}/password",
        json={"password": "Fresh!Passw0rd", "confirm_password": "Fresh!Passw0rD"},
        headers=reader_headers,
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["detail"] == "Passwords do not match"


def test_change_password_requires_token(client) -> None:
    r = client.put(f"{ME}/password", json={"password": "x", "confirm_password": "x"})
    assert r.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
