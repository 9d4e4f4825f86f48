from __future__ import annotations

import logging
import uuid
from typing import List

from .. import redis_bus
from ..db import get_db
from ..models.match import Conversation, Message
from ..repositories.conversations import ConversationRepository
from ..repositories.exceptions import NotFoundRepositoryError, StorageUnavailableRepositoryError
from .errors import StorageUnavailable
from .quota import Clock, utcnow

LOGGER = logging.getLogger("uvicorn.error")


class ConversationService:
    """Messaging inside conversations unlocked by a match."""

    def __init__(self, repository: ConversationRepository, *, clock: Clock = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    async def _require_participant(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self._repository.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundRepositoryError("conversation not found")
        if user_id not in conversation.participants:
            raise PermissionError("not a participant of this conversation")
        return conversation

    async def send_message(self, conversation_id: str, sender_id: str, text: str) -> Message:
        body = (text or "").strip()
        if not body:
            raise ValueError("message text required")
        try:
            conversation = await self._require_participant(conversation_id, sender_id)
            message = Message(
                message_id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                sender_id=sender_id,
                text=body,
                created_at=self._clock(),
            )
            await self._repository.insert_message(message)
            await self._repository.touch(conversation_id, message)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc

        event = {"type": "message_created", "message": message.model_dump(mode="json")}
        for participant in conversation.participants:
            await redis_bus.publish_to_user(participant, event)
        return message

    async def list_messages(self, conversation_id: str, user_id: str, limit: int = 100) -> List[Message]:
        n = max(1, min(int(limit or 100), 500))
        try:
            await self._require_participant(conversation_id, user_id)
            return await self._repository.list_messages(conversation_id, n)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc


def get_conversation_service() -> ConversationService:
    return ConversationService(ConversationRepository(get_db()))


__all__ = ["ConversationService", "get_conversation_service"]
