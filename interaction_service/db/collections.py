"""MongoDB collection names used by the interaction service."""

from __future__ import annotations

USERS_COLLECTION = "users"
DECISIONS_COLLECTION = "decisions"
MATCHES_COLLECTION = "matches"
CONVERSATIONS_COLLECTION = "conversations"
MESSAGES_COLLECTION = "messages"
NOTIFICATIONS_COLLECTION = "notifications"
SUPER_LIKE_USAGE_COLLECTION = "super_like_usage"
PROFILE_VIEWS_COLLECTION = "profile_views"

__all__ = [
    "USERS_COLLECTION",
    "DECISIONS_COLLECTION",
    "MATCHES_COLLECTION",
    "CONVERSATIONS_COLLECTION",
    "MESSAGES_COLLECTION",
    "NOTIFICATIONS_COLLECTION",
    "SUPER_LIKE_USAGE_COLLECTION",
    "PROFILE_VIEWS_COLLECTION",
]
