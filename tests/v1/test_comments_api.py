"""Tests for comment endpoints."""

from fastapi import status

COMMENTS = "/api/v1/comments"


def test_anonymous_comment(client, published_post) -> None:
    r = client.post(
        COMMENTS,
        json={"post_id": published_post.id, "message": "Lovely", "display_name": "Visitor"},
    )
    assert r.status_code == status.HTTP_201_CREATED
    data = r.json()
    assert data["display_name"] == "Visitor"
    assert data["is_anonymous"] is True

    r = client.get(COMMENTS, params={"post_id": published_post.id})
    assert [c["message"] for c in r.json()] == ["Lovely"]


def test_signed_in_comment_uses_profile(client, published_post, reader_headers) -> None:
    r = client.post(
        COMMENTS,
        json={"post_id": published_post.id, "message": "Me again", "display_name": "Fake"},
        headers=reader_headers,
    )
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["display_name"] == "Regular Reader"
    assert r.json()["is_anonymous"] is False


def test_comment_on_draft_is_not_found(client, make_post) -> None:
    draft = make_post()
    r = client.post(COMMENTS, json={"post_id": draft.id, "message": "Hello"})
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_admin_moderation(client, published_post, admin_headers, reader_headers) -> None:
    comment_id = client.post(
        COMMENTS, json={"post_id": published_post.id, "message": "Spam?"}
    ).json()["id"]

    r = client.patch(f"{COMMENTS}/{comment_id}", json={"is_approved": False}, headers=reader_headers)
    assert r.status_code == status.HTTP_403_FORBIDDEN

    r = client.patch(f"{COMMENTS}/{comment_id}", json={"is_approved": False}, headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert client.get(COMMENTS, params={"post_id": published_post.id}).json() == []

    all_comments = client.get(f"{COMMENTS}/all", headers=admin_headers).json()
    assert [c["id"] for c in all_comments] == [comment_id]

    r = client.delete(f"{COMMENTS}/{comment_id}", headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    assert client.get(f"{COMMENTS}/all", headers=admin_headers).json() == []
