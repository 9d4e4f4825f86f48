from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .collections import (
    CONVERSATIONS_COLLECTION,
    DECISIONS_COLLECTION,
    MATCHES_COLLECTION,
    MESSAGES_COLLECTION,
    NOTIFICATIONS_COLLECTION,
    PROFILE_VIEWS_COLLECTION,
    SUPER_LIKE_USAGE_COLLECTION,
    USERS_COLLECTION,
)


async def ensure_user_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[USERS_COLLECTION]
    await collection.create_index("user_id", name="users_user_id_unique", unique=True)
    await collection.create_index(
        [("is_active", ASCENDING), ("is_premium", DESCENDING), ("last_seen_at", DESCENDING)],
        name="users_discovery_idx",
    )


async def ensure_decision_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[DECISIONS_COLLECTION]
    # One decision (like, super_like or pass) per ordered pair
    await collection.create_index(
        [("actor_id", ASCENDING), ("target_id", ASCENDING)],
        name="decisions_actor_target_unique",
        unique=True,
    )
    await collection.create_index(
        [("target_id", ASCENDING), ("created_at", DESCENDING)],
        name="decisions_target_id_idx",
    )
    await collection.create_index(
        [("actor_id", ASCENDING), ("action", ASCENDING), ("created_at", DESCENDING)],
        name="decisions_actor_action_idx",
    )
    await db[SUPER_LIKE_USAGE_COLLECTION].create_index(
        [("user_id", ASCENDING), ("day", ASCENDING)],
        name="super_like_usage_user_day_unique",
        unique=True,
    )
    await db[PROFILE_VIEWS_COLLECTION].create_index(
        [("viewer_id", ASCENDING), ("viewed_id", ASCENDING)],
        name="profile_views_viewer_viewed_unique",
        unique=True,
    )


async def ensure_match_indexes(db: AsyncIOMotorDatabase) -> None:
    await db[MATCHES_COLLECTION].create_index("pair_key", name="matches_pair_key_unique", unique=True)
    await db[MATCHES_COLLECTION].create_index(
        [("user_ids", ASCENDING), ("created_at", DESCENDING)],
        name="matches_user_ids_idx",
    )
    conversations = db[CONVERSATIONS_COLLECTION]
    await conversations.create_index("pair_key", name="conversations_pair_key_unique", unique=True)
    await conversations.create_index(
        "conversation_id", name="conversations_conversation_id_unique", unique=True
    )
    await conversations.create_index(
        [("participants", ASCENDING), ("last_activity_at", DESCENDING)],
        name="conversations_participants_idx",
    )
    await db[MESSAGES_COLLECTION].create_index(
        [("conversation_id", ASCENDING), ("created_at", ASCENDING)],
        name="messages_conversation_idx",
    )


async def ensure_notification_indexes(db: AsyncIOMotorDatabase) -> None:
    collection = db[NOTIFICATIONS_COLLECTION]
    await collection.create_index(
        "notification_id", name="notifications_notification_id_unique", unique=True
    )
    await collection.create_index(
        [("recipient_id", ASCENDING), ("created_at", DESCENDING)],
        name="notifications_recipient_idx",
    )
    await collection.create_index(
        [("recipient_id", ASCENDING), ("read", ASCENDING)],
        name="notifications_unread_idx",
    )


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await ensure_user_indexes(db)
    await ensure_decision_indexes(db)
    await ensure_match_indexes(db)
    await ensure_notification_indexes(db)


__all__ = [
    "ensure_indexes",
    "ensure_user_indexes",
    "ensure_decision_indexes",
    "ensure_match_indexes",
    "ensure_notification_indexes",
]
