"""Tests for reader comments and moderation."""

import pytest

from unfiltered_voice.core.errors import NotFound, ValidationFailure
from unfiltered_voice.services import comments


def test_signed_in_comment_uses_profile_name(db_session, reader, published_post) -> None:
    comment = comments.add_comment(
        db_session, published_post.id, "  Great read  ", user_id=reader.id, display_name="Ignored"
    )
    assert comment.display_name == "Regular Reader"
    assert comment.user_id == reader.id
    assert comment.message == "Great read"
    assert not comment.is_anonymous
    assert comment.is_approved


@pytest.mark.parametrize(
    ("supplied", "expected"),
    [("Jane", "Jane"), ("   ", "Anonymous"), (None, "Anonymous")],
)
def test_anonymous_comment_name(db_session, published_post, supplied, expected) -> None:
    comment = comments.add_comment(db_session, published_post.id, "Hi", display_name=supplied)
    assert comment.display_name == expected
    assert comment.user_id is None
    assert comment.is_anonymous


def test_comment_on_draft_is_refused(db_session, make_post) -> None:
    draft = make_post()
    with pytest.raises(NotFound):
        comments.add_comment(db_session, draft.id, "Too early")


@pytest.mark.parametrize("message", ["", "   ", "x" * (comments.MAX_MESSAGE_LENGTH + 1)])
def test_invalid_comment_text(db_session, published_post, message) -> None:
    with pytest.raises(ValidationFailure):
        comments.add_comment(db_session, published_post.id, message)


def test_reply_must_target_same_post(db_session, make_post, published_post) -> None:
    other = make_post(is_published=True)
    parent = comments.add_comment(db_session, other.id, "Elsewhere")
    with pytest.raises(ValidationFailure):
        comments.add_comment(db_session, published_post.id, "Reply", parent_id=parent.id)

    root = comments.add_comment(db_session, published_post.id, "Root")
    reply = comments.add_comment(db_session, published_post.id, "Reply", parent_id=root.id)
    assert reply.parent_id == root.id


def test_moderation_hides_and_deletes(db_session, published_post) -> None:
    first = comments.add_comment(db_session, published_post.id, "First")
    second = comments.add_comment(db_session, published_post.id, "Second")

    comments.set_comment_approval(db_session, first.id, False)
    visible = comments.list_approved_comments(db_session, published_post.id)
    assert [c.id for c in visible] == [second.id]
    assert len(comments.list_all_comments(db_session)) == 2

    comments.delete_comment(db_session, second.id)
    assert comments.list_approved_comments(db_session, published_post.id) == []
    with pytest.raises(NotFound):
        comments.delete_comment(db_session, second.id)


def test_anonymize_only_touches_that_user(db_session, make_user, published_post) -> None:
    leaving = make_user("Leaving")
    staying = make_user("Staying")
    gone = comments.add_comment(db_session, published_post.id, "bye", user_id=leaving.id)
    kept = comments.add_comment(db_session, published_post.id, "hello", user_id=staying.id)

    assert comments.anonymize_user_comments(db_session, leaving.id) == 1
    db_session.commit()

    db_session.refresh(gone)
    db_session.refresh(kept)
    assert gone.display_name == "Anonymous User" and gone.user_id is None
    assert kept.display_name == "Staying" and kept.user_id == staying.id
