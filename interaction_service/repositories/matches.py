"""Persistence for mutual matches."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from ..db.collections import MATCHES_COLLECTION
from ..models.match import MatchRecord
from .exceptions import NotFoundRepositoryError, storage_errors

LOGGER = logging.getLogger("uvicorn.error")


class MatchRepository:
    """MongoDB access layer for match documents keyed by canonical pair."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[MATCHES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    async def get_by_pair_key(self, key: str) -> Optional[MatchRecord]:
        with storage_errors("matches.find_one"):
            doc = await self._collection.find_one({"pair_key": key})
        return MatchRecord(**doc) if doc else None

    async def create_if_absent(
        self,
        *,
        key: str,
        user_ids: List[str],
        match_id: str,
        created_at: datetime,
    ) -> Tuple[MatchRecord, bool]:
        """Insert the match for ``key`` unless one exists.

        Returns the stored record and whether this call created it. A unique
        index violation from a concurrent insert counts as "already exists".
        """

        created = False
        try:
            with storage_errors("matches.upsert"):
                result = await self._collection.update_one(
                    {"pair_key": key},
                    {
                        "$setOnInsert": {
                            "match_id": match_id,
                            "pair_key": key,
                            "user_ids": sorted(user_ids),
                            "status": "mutual",
                            "created_at": created_at,
                        }
                    },
                    upsert=True,
                )
            created = result.upserted_id is not None
        except DuplicateKeyError:
            LOGGER.debug("Match for %s created concurrently", key)

        record = await self.get_by_pair_key(key)
        if record is None:  # pragma: no cover - upsert guarantees a document
            raise NotFoundRepositoryError("match upsert failed")
        return record, created

    async def list_for_user(self, user_id: str) -> List[MatchRecord]:
        with storage_errors("matches.find"):
            cursor = self._collection.find({"user_ids": user_id}).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
        return [MatchRecord(**doc) for doc in docs]


__all__ = ["MatchRepository"]
