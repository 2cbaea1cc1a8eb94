"""End-to-end tests for proposing and reviewing changes over HTTP."""

from fastapi import status

from unfiltered_voice.models import Post
from unfiltered_voice.services.roles import resolve_roles

ADMIN_POSTS = "/api/v1/admin/posts"
CHANGES = "/api/v1/change-requests"


def _review(client, headers, change_id, action, notes=None):
    return client.post(
        f"{CHANGES}/{change_id}/review",
        json={"action": action, "notes": notes},
        headers=headers,
    )


def test_admin_proposal_owner_approval(
    client, db_session, make_post, admin_headers, owner_headers
) -> None:
    post = make_post(title="Draft thoughts", is_published=False)

    r = client.patch(
        f"{ADMIN_POSTS}/{post.id}",
        json={"title": "Final thoughts", "is_published": True},
        headers=admin_headers,
    )
    assert r.status_code == status.HTTP_202_ACCEPTED
    change_id = r.json()["change_request_id"]

    r = client.get(CHANGES, params={"status": "pending"}, headers=admin_headers)
    assert r.status_code == status.HTTP_200_OK
    pending = r.json()
    assert [item["id"] for item in pending] == [change_id]
    assert pending[0]["requester_name"] == "Site Admin"
    assert pending[0]["original_data"]["title"] == "Draft thoughts"

    r = _review(client, admin_headers, change_id, "approve")
    assert r.status_code == status.HTTP_403_FORBIDDEN

    r = _review(client, owner_headers, change_id, "approve", "Looks good")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"success": True, "status": "approved"}

    updated = db_session.get(Post, post.id)
    db_session.refresh(updated)
    assert updated.title == "Final thoughts"
    assert updated.is_published
    assert updated.published_at is not None

    r = client.get(f"{CHANGES}/{change_id}", headers=owner_headers)
    detail = r.json()
    assert detail["status"] == "approved"
    assert detail["review_notes"] == "Looks good"
    assert detail["reviewed_by"] is not None

    r = _review(client, owner_headers, change_id, "reject")
    assert r.status_code == status.HTTP_409_CONFLICT


def test_owner_rejection_leaves_post(client, db_session, make_post, admin_headers, owner_headers) -> None:
    post = make_post(title="Stay")
    r = client.delete(f"{ADMIN_POSTS}/{post.id}", headers=admin_headers)
    change_id = r.json()["change_request_id"]

    r = _review(client, owner_headers, change_id, "reject", "Keep it")
    assert r.json()["status"] == "rejected"
    assert db_session.get(Post, post.id) is not None


def test_stale_proposal_returns_conflict(
    client, db_session, make_post, admin_headers, owner_headers
) -> None:
    post = make_post(title="First")
    r = client.patch(f"{ADMIN_POSTS}/{post.id}", json={"title": "Second"}, headers=admin_headers)
    change_id = r.json()["change_request_id"]
    client.patch(f"{ADMIN_POSTS}/{post.id}", json={"title": "Owner's"}, headers=owner_headers)

    r = _review(client, owner_headers, change_id, "approve")

    assert r.status_code == status.HTTP_409_CONFLICT
    detail = client.get(f"{CHANGES}/{change_id}", headers=owner_headers).json()
    assert detail["status"] == "pending"


def test_review_rejects_unknown_action(client, make_post, admin_headers, owner_headers) -> None:
    post = make_post()
    change_id = client.delete(f"{ADMIN_POSTS}/{post.id}", headers=admin_headers).json()[
        "change_request_id"
    ]
    r = _review(client, owner_headers, change_id, "maybe")
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_missing_change_request(client, owner_headers) -> None:
    assert client.get(f"{CHANGES}/nope", headers=owner_headers).status_code == 404
    assert _review(client, owner_headers, "nope", "approve").status_code == 404


def test_readers_cannot_see_queue(client, reader_headers) -> None:
    assert client.get(CHANGES, headers=reader_headers).status_code == status.HTTP_403_FORBIDDEN


def test_admin_role_proposal_and_approval(
    client, db_session, reader, admin_headers, owner_headers
) -> None:
    r = client.put(
        f"/api/v1/admin/users/{reader.id}/admin-role",
        json={"is_admin": True},
        headers=admin_headers,
    )
    assert r.status_code == status.HTTP_202_ACCEPTED
    change_id = r.json()["change_request_id"]

    detail = client.get(f"{CHANGES}/{change_id}", headers=owner_headers).json()
    assert detail["change_type"] == "user_role_change"
    assert detail["original_data"]["id"] == reader.id
    assert detail["proposed_changes"] == {"action": "add_role", "role": "admin"}
    assert detail["change_summary"] == "Change user role from user to admin"
    assert not resolve_roles(db_session, reader.id).is_admin

    assert _review(client, owner_headers, change_id, "approve").status_code == 200
    assert resolve_roles(db_session, reader.id).is_admin


def test_role_proposal_for_deleted_account_returns_conflict(
    client, reader, reader_headers, admin_headers, owner_headers
) -> None:
    r = client.put(
        f"/api/v1/admin/users/{reader.id}/admin-role",
        json={"is_admin": True},
        headers=admin_headers,
    )
    change_id = r.json()["change_request_id"]
    assert client.delete("/api/v1/users/me", headers=reader_headers).status_code == 200

    r = _review(client, owner_headers, change_id, "approve")

    assert r.status_code == status.HTTP_409_CONFLICT
    detail = client.get(f"{CHANGES}/{change_id}", headers=owner_headers).json()
    assert detail["status"] == "pending"


def test_approved_create_becomes_public(client, admin_headers, owner_headers) -> None:
    r = client.post(
        ADMIN_POSTS,
        json={
            "title": "Reviewed Essay",
            "category": "creative-writing",
            "content": "ink",
            "is_published": True,
        },
        headers=admin_headers,
    )
    change_id = r.json()["change_request_id"]
    assert client.get("/api/v1/posts/creative-writing/reviewed-essay").status_code == 404

    _review(client, owner_headers, change_id, "approve")

    r = client.get("/api/v1/posts/creative-writing/reviewed-essay")
    assert r.status_code == status.HTTP_200_OK
    assert r.json()["title"] == "Reviewed Essay"
