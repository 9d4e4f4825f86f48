"""Declined-action taxonomy for the interaction engine.

Every error carries a machine-readable ``reason`` and a user-facing
``message`` so callers can explain a declined action instead of showing a
generic failure.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class InteractionError(Exception):
    reason: str = "interaction_error"
    default_message: str = "Action declined"
    status_code: int = 400

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {"status": "declined", "reason": self.reason, "message": self.message}


class InvalidActor(InteractionError):
    reason = "invalid_actor"
    default_message = "This account cannot perform that action"
    status_code = 400


class UnknownTarget(InteractionError):
    reason = "unknown_target"
    default_message = "Profile not found"
    status_code = 404


class DuplicateDecision(InteractionError):
    reason = "duplicate_decision"
    default_message = "You already liked this profile"
    status_code = 409


class QuotaExceeded(InteractionError):
    reason = "quota_exceeded"
    default_message = "No Super Likes left today"
    status_code = 429


class StorageUnavailable(InteractionError):
    reason = "storage_unavailable"
    default_message = "Service temporarily unavailable, please retry"
    status_code = 503


class NotificationDispatchFailed(InteractionError):
    """Raised inside the dispatcher; logged by the engine and never propagated."""

    reason = "notification_dispatch_failed"
    default_message = "Notification could not be delivered"
    status_code = 500


__all__ = [
    "InteractionError",
    "InvalidActor",
    "UnknownTarget",
    "DuplicateDecision",
    "QuotaExceeded",
    "StorageUnavailable",
    "NotificationDispatchFailed",
]
