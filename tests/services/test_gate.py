"""Tests for the direct-or-deferred write dispatcher."""

import pytest
from sqlalchemy import select

from unfiltered_voice.core.errors import PermissionDenied
from unfiltered_voice.models import ChangeRequest
from unfiltered_voice.models.change_request import CHANGE_POST_EDIT, STATUS_PENDING
from unfiltered_voice.services.gate import (
    GATED_RESOURCES,
    GatedAction,
    ResourceType,
    can_act_directly,
    perform_direct_write,
    perform_gated_action,
)
from unfiltered_voice.services.posts import post_snapshot
from unfiltered_voice.services.roles import NO_ROLES, RoleFlags, resolve_roles

OWNER_FLAGS = RoleFlags(is_admin=True, is_owner=True)
ADMIN_FLAGS = RoleFlags(is_admin=True)


@pytest.mark.parametrize("resource", list(ResourceType))
def test_owner_always_acts_directly(resource) -> None:
    assert can_act_directly(resource, OWNER_FLAGS)


@pytest.mark.parametrize("resource", list(ResourceType))
def test_admin_direct_only_for_ungated(resource) -> None:
    assert can_act_directly(resource, ADMIN_FLAGS) is (resource not in GATED_RESOURCES)


@pytest.mark.parametrize("resource", list(ResourceType))
def test_reader_never_acts_directly(resource) -> None:
    assert not can_act_directly(resource, NO_ROLES)


def test_gated_resources_are_posts_and_roles() -> None:
    assert GATED_RESOURCES == {ResourceType.POST, ResourceType.USER_ROLE}


def test_owner_write_is_applied(db_session, owner, mocker) -> None:
    direct = mocker.Mock(return_value="done")
    action = GatedAction(resource_type=ResourceType.POST, direct=direct)

    outcome = perform_gated_action(db_session, action, owner.id, resolve_roles(db_session, owner.id))

    assert outcome.applied
    assert outcome.result == "done"
    assert outcome.change_request_id is None
    direct.assert_called_once_with()


def test_admin_ungated_write_is_applied(db_session, admin, mocker) -> None:
    direct = mocker.Mock(return_value=42)
    action = GatedAction(resource_type=ResourceType.COMMENT, direct=direct)

    outcome = perform_gated_action(db_session, action, admin.id, resolve_roles(db_session, admin.id))

    assert outcome.applied
    assert outcome.result == 42


def test_admin_gated_write_becomes_change_request(db_session, admin, make_post, mocker) -> None:
    post = make_post(title="Original title")
    direct = mocker.Mock()
    action = GatedAction(
        resource_type=ResourceType.POST,
        direct=direct,
        change_type=CHANGE_POST_EDIT,
        target_id=post.id,
        original_data=post_snapshot(post),
        proposed_changes={"title": "Better title"},
        summary="Edit post: Original title",
    )

    outcome = perform_gated_action(db_session, action, admin.id, resolve_roles(db_session, admin.id))

    assert not outcome.applied
    assert outcome.change_request_id
    direct.assert_not_called()

    request = db_session.get(ChangeRequest, outcome.change_request_id)
    assert request.status == STATUS_PENDING
    assert request.requested_by == admin.id
    assert request.proposed_changes == {"title": "Better title"}
    db_session.refresh(post)
    assert post.title == "Original title"


def test_reader_write_is_refused(db_session, reader, mocker) -> None:
    direct = mocker.Mock()
    action = GatedAction(resource_type=ResourceType.SITE_SETTING, direct=direct)

    with pytest.raises(PermissionDenied):
        perform_gated_action(db_session, action, reader.id, resolve_roles(db_session, reader.id))

    direct.assert_not_called()
    assert db_session.scalars(select(ChangeRequest)).all() == []


def test_gated_action_without_proposal_is_refused(db_session, admin, mocker) -> None:
    action = GatedAction(resource_type=ResourceType.USER_ROLE, direct=mocker.Mock())

    with pytest.raises(PermissionDenied):
        perform_gated_action(db_session, action, admin.id, ADMIN_FLAGS)


@pytest.mark.parametrize(
    "resource",
    [resource for resource in ResourceType if resource not in GATED_RESOURCES],
)
def test_direct_write_runs_for_admin(db_session, admin, mocker, resource) -> None:
    direct = mocker.Mock(return_value="saved")

    assert perform_direct_write(db_session, resource, direct, admin.id, ADMIN_FLAGS) == "saved"
    direct.assert_called_once_with()


def test_direct_write_on_gated_resource_refused_for_admin(db_session, admin, mocker) -> None:
    direct = mocker.Mock()

    with pytest.raises(PermissionDenied):
        perform_direct_write(db_session, ResourceType.USER_ROLE, direct, admin.id, ADMIN_FLAGS)

    direct.assert_not_called()
    assert db_session.scalars(select(ChangeRequest)).all() == []


def test_direct_write_refused_for_reader(db_session, reader, mocker) -> None:
    direct = mocker.Mock()

    with pytest.raises(PermissionDenied):
        perform_direct_write(db_session, ResourceType.CATEGORY, direct, reader.id, NO_ROLES)

    direct.assert_not_called()
