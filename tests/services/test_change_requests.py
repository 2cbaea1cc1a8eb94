"""Tests for the owner-reviewed change request lifecycle."""

import pytest
from sqlalchemy import select

from unfiltered_voice.core.errors import (
    ChangeRequestConflict,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)
from unfiltered_voice.models import ChangeRequest, Comment, Post, PostAuditLog
from unfiltered_voice.models._ids import new_id
from unfiltered_voice.models.change_request import (
    CHANGE_POST_CREATE,
    CHANGE_POST_DELETE,
    CHANGE_POST_EDIT,
    CHANGE_USER_ROLE,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from unfiltered_voice.services import accounts
from unfiltered_voice.services import change_requests as cr
from unfiltered_voice.services import posts
from unfiltered_voice.services.roles import resolve_roles


def _propose_edit(db, admin, post, changes):
    return cr.submit_change_request(
        db,
        requester_id=admin.id,
        change_type=CHANGE_POST_EDIT,
        target_id=post.id,
        original_data=posts.post_snapshot(post),
        proposed_changes=changes,
        summary=f"Edit post: {post.title}",
    )


def _status(db, change_id):
    return db.scalar(select(ChangeRequest.status).where(ChangeRequest.id == change_id))


def test_submit_requires_admin(db_session, reader, make_post) -> None:
    post = make_post()
    with pytest.raises(PermissionDenied):
        _propose_edit(db_session, reader, post, {"title": "Nope"})


def test_submit_leaves_target_untouched(db_session, admin, make_post) -> None:
    post = make_post(title="Untouched")
    change_id = _propose_edit(db_session, admin, post, {"title": "Touched"})

    assert _status(db_session, change_id) == STATUS_PENDING
    db_session.refresh(post)
    assert post.title == "Untouched"


@pytest.mark.parametrize(
    ("change_type", "original", "proposed"),
    [
        ("post_rename", {"id": "x"}, {"title": "x"}),
        (CHANGE_POST_EDIT, None, {"title": "x"}),
        (CHANGE_POST_EDIT, {"id": "x"}, {"unknown": "x"}),
        (CHANGE_POST_CREATE, {"id": "x"}, {"title": "t", "category": "books", "content": "c"}),
        (CHANGE_POST_CREATE, None, {"title": "t", "category": "poetry", "content": "c"}),
        (CHANGE_USER_ROLE, {"id": "x"}, {"action": "promote"}),
        (CHANGE_USER_ROLE, {"id": "x"}, {"action": "add_role", "role": "owner"}),
    ],
)
def test_malformed_proposals_are_rejected(db_session, admin, change_type, original, proposed) -> None:
    with pytest.raises(ValidationFailure):
        cr.submit_change_request(
            db_session,
            requester_id=admin.id,
            change_type=change_type,
            target_id=new_id(),
            original_data=original,
            proposed_changes=proposed,
            summary="bad",
        )


def test_approve_edit_applies_and_records(db_session, admin, owner, make_post) -> None:
    post = make_post(title="Before")
    change_id = _propose_edit(db_session, admin, post, {"title": "After"})

    assert cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE, "ok")

    request = db_session.get(ChangeRequest, change_id)
    assert request.status == STATUS_APPROVED
    assert request.reviewed_by == owner.id
    assert request.reviewed_at is not None
    assert request.review_notes == "ok"
    db_session.refresh(post)
    assert post.title == "After"

    audit = db_session.scalars(select(PostAuditLog).where(PostAuditLog.post_id == post.id)).all()
    assert [entry.action for entry in audit] == ["UPDATE"]
    assert audit[0].changed_by == admin.id
    assert audit[0].old_data["title"] == "Before"
    assert audit[0].new_data["title"] == "After"


def test_reject_leaves_target_unchanged(db_session, admin, owner, make_post) -> None:
    post = make_post(title="Keep me")
    change_id = _propose_edit(db_session, admin, post, {"title": "Replace me"})

    assert cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_REJECT, "no")

    assert _status(db_session, change_id) == STATUS_REJECTED
    db_session.refresh(post)
    assert post.title == "Keep me"


def test_review_requires_owner(db_session, admin, make_post) -> None:
    post = make_post()
    change_id = _propose_edit(db_session, admin, post, {"title": "Self approved"})

    with pytest.raises(PermissionDenied):
        cr.review_change_request(db_session, change_id, admin.id, cr.REVIEW_APPROVE)
    assert _status(db_session, change_id) == STATUS_PENDING


def test_review_unknown_request(db_session, owner) -> None:
    with pytest.raises(NotFound):
        cr.review_change_request(db_session, new_id(), owner.id, cr.REVIEW_APPROVE)


def test_review_unknown_action(db_session, owner, admin, make_post) -> None:
    change_id = _propose_edit(db_session, admin, make_post(), {"title": "x"})
    with pytest.raises(ValidationFailure):
        cr.review_change_request(db_session, change_id, owner.id, "maybe")


@pytest.mark.parametrize("second", [cr.REVIEW_APPROVE, cr.REVIEW_REJECT])
def test_second_review_is_a_conflict(db_session, admin, owner, make_post, second) -> None:
    post = make_post(title="Once")
    change_id = _propose_edit(db_session, admin, post, {"title": "Twice"})
    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    with pytest.raises(ChangeRequestConflict):
        cr.review_change_request(db_session, change_id, owner.id, second)

    assert _status(db_session, change_id) == STATUS_APPROVED
    audit_count = len(
        db_session.scalars(select(PostAuditLog).where(PostAuditLog.post_id == post.id)).all()
    )
    assert audit_count == 1


def test_stale_edit_is_a_conflict(db_session, admin, owner, make_post) -> None:
    post = make_post(title="Original")
    change_id = _propose_edit(db_session, admin, post, {"title": "Admin version"})
    posts.update_post(db_session, post.id, {"title": "Owner version"}, owner.id)

    with pytest.raises(ChangeRequestConflict):
        cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    assert _status(db_session, change_id) == STATUS_PENDING
    current = db_session.get(Post, post.id)
    db_session.refresh(current)
    assert current.title == "Owner version"


def test_edit_of_untouched_field_is_not_stale(db_session, admin, owner, make_post) -> None:
    post = make_post(title="Title", excerpt="Old excerpt")
    change_id = _propose_edit(db_session, admin, post, {"excerpt": "New excerpt"})
    posts.update_post(db_session, post.id, {"title": "Retitled"}, owner.id)

    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    db_session.refresh(post)
    assert post.title == "Retitled"
    assert post.excerpt == "New excerpt"


def test_edit_of_deleted_post_is_a_conflict(db_session, admin, owner, make_post) -> None:
    post = make_post()
    change_id = _propose_edit(db_session, admin, post, {"title": "Gone"})
    posts.delete_post(db_session, post.id, owner.id)

    with pytest.raises(ChangeRequestConflict):
        cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)
    assert _status(db_session, change_id) == STATUS_PENDING


def test_approve_create_uses_reserved_id(db_session, admin, owner) -> None:
    target = new_id()
    change_id = cr.submit_change_request(
        db_session,
        requester_id=admin.id,
        change_type=CHANGE_POST_CREATE,
        target_id=target,
        original_data=None,
        proposed_changes={"title": "Brand New Thoughts", "category": "books", "content": "hello"},
        summary="Create new post: Brand New Thoughts",
    )
    assert db_session.get(Post, target) is None

    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    created = db_session.get(Post, target)
    assert created is not None
    assert created.slug == "brand-new-thoughts"
    assert created.category == "books"
    assert not created.is_published


def test_approve_delete_removes_post_and_comments(db_session, admin, owner, published_post) -> None:
    db_session.add(Comment(post_id=published_post.id, display_name="Reader", message="Nice"))
    db_session.commit()
    change_id = cr.submit_change_request(
        db_session,
        requester_id=admin.id,
        change_type=CHANGE_POST_DELETE,
        target_id=published_post.id,
        original_data=posts.post_snapshot(published_post),
        proposed_changes={},
        summary="Delete post",
    )

    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    assert db_session.get(Post, published_post.id) is None
    assert db_session.scalars(select(Comment)).all() == []


def test_approve_role_change(db_session, admin, owner, reader) -> None:
    summary = accounts.user_summary(db_session, reader)
    change_id = cr.submit_change_request(
        db_session,
        requester_id=admin.id,
        change_type=CHANGE_USER_ROLE,
        target_id=reader.id,
        original_data={"id": reader.id, "role": summary["role"]},
        proposed_changes={"action": "add_role", "role": "admin"},
        summary="Change user role from user to admin",
    )
    assert not resolve_roles(db_session, reader.id).is_admin

    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    assert resolve_roles(db_session, reader.id).is_admin


def test_role_change_for_deleted_user_is_a_conflict(db_session, admin, owner, reader) -> None:
    change_id = cr.submit_change_request(
        db_session,
        requester_id=admin.id,
        change_type=CHANGE_USER_ROLE,
        target_id=reader.id,
        original_data={"id": reader.id, "role": "user"},
        proposed_changes={"action": "add_role", "role": "admin"},
        summary="Change user role from user to admin",
    )
    accounts.delete_user_account(db_session, reader.id, reader.id)

    with pytest.raises(ChangeRequestConflict):
        cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)
    assert _status(db_session, change_id) == STATUS_PENDING


def test_approving_publish_queues_notification(db_session, admin, owner, make_post) -> None:
    post = make_post()
    change_id = _propose_edit(db_session, admin, post, {"is_published": True})

    cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    db_session.refresh(post)
    assert post.is_published
    assert post.published_at is not None
    assert posts.pop_published_posts(db_session) == [post.id]


def test_failed_review_queues_nothing(db_session, admin, owner, make_post) -> None:
    post = make_post(title="Draft")
    change_id = _propose_edit(db_session, admin, post, {"title": "Live", "is_published": True})
    posts.update_post(db_session, post.id, {"title": "Moved on"}, owner.id)

    with pytest.raises(ChangeRequestConflict):
        cr.review_change_request(db_session, change_id, owner.id, cr.REVIEW_APPROVE)

    assert posts.pop_published_posts(db_session) == []


def test_list_pairs_requester_name(db_session, admin, owner, make_post) -> None:
    post = make_post()
    first = _propose_edit(db_session, admin, post, {"title": "One"})
    orphan = ChangeRequest(
        change_type=CHANGE_POST_EDIT,
        target_id=post.id,
        requested_by=new_id(),
        status=STATUS_PENDING,
        original_data={"id": post.id},
        proposed_changes={"title": "Two"},
        change_summary="orphan",
    )
    db_session.add(orphan)
    db_session.commit()

    names = {request.id: name for request, name in cr.list_change_requests(db_session)}
    assert names[first] == "Site Admin"
    assert names[orphan.id] == cr.UNKNOWN_REQUESTER

    cr.review_change_request(db_session, first, owner.id, cr.REVIEW_REJECT)
    pending = cr.list_change_requests(db_session, status=STATUS_PENDING)
    assert [request.id for request, _ in pending] == [orphan.id]
