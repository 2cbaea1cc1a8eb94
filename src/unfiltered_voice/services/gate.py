"""Single dispatcher deciding whether a write lands now or goes to review."""
from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import PermissionDenied
from unfiltered_voice.services.change_requests import submit_change_request
from unfiltered_voice.services.roles import RoleFlags

logger = logging.getLogger(__name__)


class ResourceType(str, enum.Enum):
    """Kinds of entity a privileged principal may write."""

    POST = "post"
    USER_ROLE = "user_role"
    COMMENT = "comment"
    CONTACT_MESSAGE = "contact_message"
    SITE_SETTING = "site_setting"
    CATEGORY = "category"
    ABOUT_CONTENT = "about_content"


# Admin writes to these are queued for the owner instead of applied.
GATED_RESOURCES = frozenset({ResourceType.POST, ResourceType.USER_ROLE})


def can_act_directly(resource_type: ResourceType, flags: RoleFlags) -> bool:
    """Return True if ``flags`` may write ``resource_type`` without review."""
    if flags.is_owner:
        return True
    if flags.is_admin:
        return resource_type not in GATED_RESOURCES
    return False


@dataclass(frozen=True)
class GatedAction:
    """A write described both as a direct mutation and as a proposal."""

    resource_type: ResourceType
    direct: Callable[[], Any]
    change_type: str | None = None
    target_id: str | None = None
    original_data: Mapping[str, Any] | None = None
    proposed_changes: Mapping[str, Any] = field(default_factory=dict)
    summary: str = ""


@dataclass(frozen=True)
class GateOutcome:
    applied: bool
    result: Any = None
    change_request_id: str | None = None


def perform_gated_action(
    db: Session,
    action: GatedAction,
    actor_id: str,
    flags: RoleFlags,
) -> GateOutcome:
    """Apply ``action`` directly when permitted, otherwise queue it for review.

    Raises:
        PermissionDenied: If the actor may neither write nor propose.
    """
    if can_act_directly(action.resource_type, flags):
        return GateOutcome(applied=True, result=action.direct())

    if flags.is_admin and action.resource_type in GATED_RESOURCES and action.change_type:
        if action.target_id is None:
            raise ValueError("Gated actions must name their target")
        change_id = submit_change_request(
            db,
            requester_id=actor_id,
            change_type=action.change_type,
            target_id=action.target_id,
            original_data=action.original_data,
            proposed_changes=action.proposed_changes,
            summary=action.summary,
        )
        logger.info("Deferred %s by %s as change request %s", action.change_type, actor_id, change_id)
        return GateOutcome(applied=False, change_request_id=change_id)

    raise PermissionDenied(f"Not allowed to modify {action.resource_type.value}")


def perform_direct_write(
    db: Session,
    resource_type: ResourceType,
    direct: Callable[[], Any],
    actor_id: str,
    flags: RoleFlags,
) -> Any:
    """Dispatch a write that has no review path and return its result.

    Raises:
        PermissionDenied: If the actor may not write ``resource_type`` directly.
    """
    outcome = perform_gated_action(
        db, GatedAction(resource_type=resource_type, direct=direct), actor_id, flags
    )
    return outcome.result
