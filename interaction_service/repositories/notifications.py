"""Persistence for notification events."""

from __future__ import annotations

from typing import List

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING

from ..db.collections import NOTIFICATIONS_COLLECTION
from ..models.notification import NotificationEvent, NotificationKind
from .exceptions import storage_errors


class NotificationRepository:
    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[NOTIFICATIONS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def insert(self, event: NotificationEvent) -> NotificationEvent:
        doc = event.model_dump(mode="python")
        doc["kind"] = event.kind.value
        with storage_errors("notifications.insert_one"):
            await self._collection.insert_one(doc)
        return event

    async def list_for_recipient(self, recipient_id: str, limit: int) -> List[NotificationEvent]:
        with storage_errors("notifications.find"):
            cursor = (
                self._collection.find({"recipient_id": recipient_id})
                .sort("created_at", DESCENDING)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)
        return [NotificationEvent(**doc) for doc in docs]

    async def has_like_from(self, recipient_id: str, actor_id: str) -> bool:
        with storage_errors("notifications.find_one"):
            doc = await self._collection.find_one(
                {
                    "recipient_id": recipient_id,
                    "payload.actor_id": actor_id,
                    "kind": {"$in": [NotificationKind.LIKE.value, NotificationKind.SUPER_LIKE.value]},
                },
                projection={"_id": 1},
            )
        return doc is not None

    async def mark_read(self, notification_id: str, recipient_id: str) -> bool:
        """Mark one notification read; False when it does not belong to ``recipient_id``."""
        with storage_errors("notifications.update_one"):
            result = await self._collection.update_one(
                {"notification_id": notification_id, "recipient_id": recipient_id},
                {"$set": {"read": True}},
            )
        return bool(result.matched_count)

    async def mark_all_read(self, recipient_id: str) -> int:
        with storage_errors("notifications.update_many"):
            result = await self._collection.update_many(
                {"recipient_id": recipient_id, "read": False},
                {"$set": {"read": True}},
            )
        return int(result.modified_count)

    async def count_unread(self, recipient_id: str) -> int:
        with storage_errors("notifications.count_documents"):
            return await self._collection.count_documents({"recipient_id": recipient_id, "read": False})


__all__ = ["NotificationRepository"]
