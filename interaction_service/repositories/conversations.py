"""Persistence for conversations and their messages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ..db.collections import CONVERSATIONS_COLLECTION, MESSAGES_COLLECTION
from ..models.match import Conversation, Message
from .exceptions import NotFoundRepositoryError, storage_errors

LOGGER = logging.getLogger("uvicorn.error")


class ConversationRepository:
    """MongoDB access layer for conversation documents and messages."""

    def __init__(self, database: AsyncIOMotorDatabase) -> None:
        self._database = database
        self._collection: AsyncIOMotorCollection = database[CONVERSATIONS_COLLECTION]
        self._messages: AsyncIOMotorCollection = database[MESSAGES_COLLECTION]

    @property
    def collection(self) -> AsyncIOMotorCollection:
        return self._collection

    @property
    def messages(self) -> AsyncIOMotorCollection:
        return self._messages

    async def get_by_pair_key(self, key: str) -> Optional[Conversation]:
        with storage_errors("conversations.find_one"):
            doc = await self._collection.find_one({"pair_key": key})
        return Conversation(**doc) if doc else None

    async def get_by_id(self, conversation_id: str) -> Optional[Conversation]:
        with storage_errors("conversations.find_one"):
            doc = await self._collection.find_one({"conversation_id": conversation_id})
        return Conversation(**doc) if doc else None

    async def create_if_absent(
        self,
        *,
        key: str,
        participants: List[str],
        conversation_id: str,
        match_id: Optional[str],
        created_at: datetime,
    ) -> Tuple[Conversation, bool]:
        created = False
        try:
            with storage_errors("conversations.upsert"):
                result = await self._collection.update_one(
                    {"pair_key": key},
                    {
                        "$setOnInsert": {
                            "conversation_id": conversation_id,
                            "pair_key": key,
                            "participants": sorted(participants),
                            "match_id": match_id,
                            "created_at": created_at,
                            "last_activity_at": created_at,
                            "last_message": None,
                        }
                    },
                    upsert=True,
                )
            created = result.upserted_id is not None
        except DuplicateKeyError:
            LOGGER.debug("Conversation for %s created concurrently", key)

        conversation = await self.get_by_pair_key(key)
        if conversation is None:  # pragma: no cover - upsert guarantees a document
            raise NotFoundRepositoryError("conversation upsert failed")
        return conversation, created

    async def list_for_user(self, user_id: str) -> List[Conversation]:
        with storage_errors("conversations.find"):
            cursor = self._collection.find({"participants": user_id}).sort(
                [("last_activity_at", DESCENDING), ("created_at", DESCENDING)]
            )
            docs = await cursor.to_list(length=None)
        return [Conversation(**doc) for doc in docs]

    async def insert_message(self, message: Message) -> Message:
        doc: Dict[str, Any] = message.model_dump()
        with storage_errors("messages.insert_one"):
            await self._messages.insert_one(doc)
        return message

    async def touch(self, conversation_id: str, message: Message) -> Conversation:
        """Bump ``last_activity_at`` and store the latest message preview."""

        preview = {
            "message_id": message.message_id,
            "sender_id": message.sender_id,
            "text": message.text[:200],
            "created_at": message.created_at,
        }
        with storage_errors("conversations.update"):
            doc = await self._collection.find_one_and_update(
                {"conversation_id": conversation_id},
                {"$set": {"last_activity_at": message.created_at, "last_message": preview}},
                return_document=ReturnDocument.AFTER,
            )
        if not doc:
            raise NotFoundRepositoryError("conversation not found")
        return Conversation(**doc)

    async def list_messages(self, conversation_id: str, limit: int) -> List[Message]:
        with storage_errors("messages.find"):
            cursor = (
                self._messages.find({"conversation_id": conversation_id})
                .sort("created_at", ASCENDING)
                .limit(limit)
            )
            docs = await cursor.to_list(length=limit)
        return [Message(**doc) for doc in docs]


__all__ = ["ConversationRepository"]
