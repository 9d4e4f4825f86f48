"""Read access to the identity collaborator's user documents."""

from __future__ import annotations

from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING

from ..db.collections import USERS_COLLECTION
from ..models.user import UserAccount
from .exceptions import storage_errors


class UserAccountRepository:
    """Thin abstraction over the users collection."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[USERS_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def get_by_user_id(self, user_id: str) -> Optional[UserAccount]:
        with storage_errors("users.find_one"):
            doc = await self._collection.find_one({"user_id": user_id})
        return UserAccount(**doc) if doc else None

    async def list_active_excluding(
        self,
        excluded_ids: Iterable[str],
        *,
        limit: int,
        offset: int = 0,
    ) -> List[UserAccount]:
        query = {"is_active": True, "user_id": {"$nin": list(excluded_ids)}}
        with storage_errors("users.find"):
            cursor = (
                self._collection.find(query)
                .sort([("is_premium", DESCENDING), ("last_seen_at", DESCENDING)])
                .skip(max(0, offset))
                .limit(max(1, limit))
            )
            docs = await cursor.to_list(length=limit)
        return [UserAccount(**doc) for doc in docs]


__all__ = ["UserAccountRepository"]
