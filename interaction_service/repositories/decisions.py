"""Persistence for the like/pass ledger, super-like usage and profile views."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Set

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from ..db.collections import (
    DECISIONS_COLLECTION,
    PROFILE_VIEWS_COLLECTION,
    SUPER_LIKE_USAGE_COLLECTION,
)
from ..models.likes import LIKE_ACTIONS, DecisionAction, DecisionRecord
from .exceptions import DuplicateKeyRepositoryError, storage_errors

LOGGER = logging.getLogger("uvicorn.error")


class DecisionRepository:
    """MongoDB access layer for directional decisions (likes, super-likes, passes)."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[DECISIONS_COLLECTION]
        self._views: AsyncIOMotorCollection = database[PROFILE_VIEWS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def get_decision(self, actor_id: str, target_id: str) -> Optional[DecisionRecord]:
        with storage_errors("decisions.find_one"):
            doc = await self._collection.find_one({"actor_id": actor_id, "target_id": target_id})
        return DecisionRecord(**doc) if doc else None

    async def find_like(self, actor_id: str, target_id: str) -> Optional[DecisionRecord]:
        """Return the like or super-like from ``actor_id`` to ``target_id``, if any."""
        with storage_errors("decisions.find_one"):
            doc = await self._collection.find_one(
                {
                    "actor_id": actor_id,
                    "target_id": target_id,
                    "action": {"$in": list(LIKE_ACTIONS)},
                }
            )
        return DecisionRecord(**doc) if doc else None

    async def insert_decision(
        self,
        *,
        actor_id: str,
        target_id: str,
        action: DecisionAction,
        created_at: datetime,
    ) -> DecisionRecord:
        """Insert a decision; raises ``DuplicateKeyRepositoryError`` if the pair is taken."""

        doc = {
            "actor_id": actor_id,
            "target_id": target_id,
            "action": action.value,
            "created_at": created_at,
        }
        try:
            with storage_errors("decisions.upsert"):
                result = await self._collection.update_one(
                    {"actor_id": actor_id, "target_id": target_id},
                    {"$setOnInsert": doc},
                    upsert=True,
                )
        except DuplicateKeyError as exc:
            LOGGER.debug("Concurrent decision insert for %s -> %s", actor_id, target_id)
            raise DuplicateKeyRepositoryError("decision already recorded") from exc
        if result.upserted_id is None:
            raise DuplicateKeyRepositoryError("decision already recorded")
        return DecisionRecord(**doc)

    async def decided_target_ids(self, actor_id: str) -> Set[str]:
        with storage_errors("decisions.find"):
            cursor = self._collection.find({"actor_id": actor_id}, projection={"target_id": 1, "_id": 0})
            rows = await cursor.to_list(length=None)
        return {row["target_id"] for row in rows if isinstance(row.get("target_id"), str)}

    async def record_profile_view(self, viewer_id: str, viewed_id: str, viewed_at: datetime) -> bool:
        """Store the first view of ``viewed_id`` by ``viewer_id``; later views are no-ops."""
        try:
            with storage_errors("profile_views.upsert"):
                result = await self._views.update_one(
                    {"viewer_id": viewer_id, "viewed_id": viewed_id},
                    {
                        "$setOnInsert": {
                            "viewer_id": viewer_id,
                            "viewed_id": viewed_id,
                            "viewed_at": viewed_at,
                        }
                    },
                    upsert=True,
                )
        except DuplicateKeyError:
            return False
        return result.upserted_id is not None


class SuperLikeUsageRepository:
    """Per-user, per-day super-like counters guarded by a unique (user_id, day) index."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._collection: AsyncIOMotorCollection = database[SUPER_LIKE_USAGE_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def used(self, user_id: str, day: str) -> int:
        with storage_errors("super_like_usage.find_one"):
            doc = await self._collection.find_one({"user_id": user_id, "day": day})
        if not doc:
            return 0
        return max(0, int(doc.get("used") or 0))

    async def reserve(self, user_id: str, day: str, allowance: int, at: datetime) -> bool:
        """Atomically take one slot of today's allowance; False when none are left."""

        if allowance <= 0:
            return False
        if await self._increment_below(user_id, day, allowance, at):
            return True
        try:
            with storage_errors("super_like_usage.insert_one"):
                await self._collection.insert_one(
                    {"user_id": user_id, "day": day, "used": 1, "updated_at": at}
                )
            return True
        except DuplicateKeyError:
            # Counter already exists for today, possibly created concurrently
            return await self._increment_below(user_id, day, allowance, at)

    async def _increment_below(self, user_id: str, day: str, allowance: int, at: datetime) -> bool:
        with storage_errors("super_like_usage.increment"):
            result = await self._collection.update_one(
                {"user_id": user_id, "day": day, "used": {"$lt": allowance}},
                {"$inc": {"used": 1}, "$set": {"updated_at": at}},
            )
        return bool(result.modified_count)

    async def release(self, user_id: str, day: str) -> None:
        with storage_errors("super_like_usage.release"):
            await self._collection.update_one(
                {"user_id": user_id, "day": day, "used": {"$gt": 0}},
                {"$inc": {"used": -1}},
            )


__all__ = ["DecisionRepository", "SuperLikeUsageRepository"]
