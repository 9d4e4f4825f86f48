"""Match Detector: turns a pair of reciprocal likes into one match and one conversation."""

from __future__ import annotations

import logging
import uuid

from ..models.match import MatchOutcome, pair_key
from ..repositories.conversations import ConversationRepository
from ..repositories.decisions import DecisionRepository
from ..repositories.matches import MatchRepository
from .quota import Clock, utcnow

LOGGER = logging.getLogger("uvicorn.error")


class MatchDetector:
    def __init__(
        self,
        decisions: DecisionRepository,
        matches: MatchRepository,
        conversations: ConversationRepository,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._decisions = decisions
        self._matches = matches
        self._conversations = conversations
        self._clock = clock

    async def check_and_create_match(self, actor_id: str, target_id: str) -> MatchOutcome:
        """Create the match for (actor, target) if the reverse like exists.

        Safe to call any number of times and from concurrent requests: the
        canonical pair key is unique in both collections, so only one caller
        ever sees ``created=True``. The conversation insert always runs so a
        previously interrupted creation is completed here.
        """

        reverse = await self._decisions.find_like(target_id, actor_id)
        if reverse is None:
            return MatchOutcome(status="no_match")

        key = pair_key(actor_id, target_id)
        now = self._clock()
        match, created = await self._matches.create_if_absent(
            key=key,
            user_ids=[actor_id, target_id],
            match_id=str(uuid.uuid4()),
            created_at=now,
        )
        conversation, conversation_created = await self._conversations.create_if_absent(
            key=key,
            participants=[actor_id, target_id],
            conversation_id=str(uuid.uuid4()),
            match_id=match.match_id,
            created_at=match.created_at,
        )
        if conversation_created and not created:
            LOGGER.info("Repaired missing conversation for match %s", match.match_id)

        return MatchOutcome(
            status="match_created",
            created=created,
            match_id=match.match_id,
            conversation_id=conversation.conversation_id,
        )


__all__ = ["MatchDetector"]
