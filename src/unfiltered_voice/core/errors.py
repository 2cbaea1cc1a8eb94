"""Domain exceptions raised by the service layer.

Endpoints translate these into HTTP responses; services never raise
``HTTPException`` directly.
"""

from __future__ import annotations


class VoiceError(RuntimeError):
    """Base class for all domain errors."""


class ValidationFailure(VoiceError):
    """Raised when input fails validation before any write is attempted."""


class PermissionDenied(VoiceError):
    """Raised when the caller lacks the capability for an action."""


class NotFound(VoiceError):
    """Raised when a requested entity does not exist or is not visible."""


class ChangeRequestConflict(VoiceError):
    """Raised when a change request cannot be reviewed or applied.

    Covers already-resolved requests and proposals whose recorded original
    state no longer matches the target entity.
    """


class BackendFailure(VoiceError):
    """Raised when the storage layer rejects or fails a mutation."""
