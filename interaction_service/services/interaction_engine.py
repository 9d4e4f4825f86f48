"""Interaction Engine: like/pass entry points and the read side the UI needs.

Flow for a like: Like Ledger -> Match Detector -> Notification Dispatcher.
Ledger and detector failures abort the action; dispatcher failures are
logged and never change the outcome returned to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config import Settings, get_settings
from ..db import get_db
from ..models.likes import LIKE_ACTIONS, DecisionAction, LikeKind, LikeOutcome, PassOutcome
from ..models.match import ConversationSummary, MatchOutcome, MatchSummary, pair_key
from ..models.notification import NotificationEvent
from ..models.user import UserAccount
from ..repositories.conversations import ConversationRepository
from ..repositories.decisions import DecisionRepository, SuperLikeUsageRepository
from ..repositories.exceptions import StorageUnavailableRepositoryError
from ..repositories.matches import MatchRepository
from ..repositories.notifications import NotificationRepository
from ..repositories.users import UserAccountRepository
from .errors import InteractionError, InvalidActor, NotificationDispatchFailed, StorageUnavailable
from .like_ledger import LikeLedger, duplicate_error
from .match_detector import MatchDetector
from .notification_dispatcher import NotificationDispatcher
from .quota import Clock, daily_allowance, next_reset, utcnow

LOGGER = logging.getLogger("uvicorn.error")


def _like_action(kind: str) -> DecisionAction:
    if kind not in LIKE_ACTIONS:
        raise ValueError(f"unsupported like kind: {kind!r}")
    return DecisionAction(kind)


class InteractionEngine:
    def __init__(
        self,
        *,
        users: UserAccountRepository,
        ledger: LikeLedger,
        detector: MatchDetector,
        dispatcher: NotificationDispatcher,
        matches: MatchRepository,
        conversations: ConversationRepository,
        notifications: NotificationRepository,
        settings: Settings,
        clock: Clock = utcnow,
    ) -> None:
        self._users = users
        self._ledger = ledger
        self._detector = detector
        self._dispatcher = dispatcher
        self._matches = matches
        self._conversations = conversations
        self._notifications = notifications
        self._settings = settings
        self._clock = clock

    @classmethod
    def from_database(
        cls,
        database: AsyncIOMotorDatabase,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ) -> "InteractionEngine":
        settings = settings or get_settings()
        users = UserAccountRepository(database)
        decisions = DecisionRepository(database)
        matches = MatchRepository(database)
        conversations = ConversationRepository(database)
        notifications = NotificationRepository(database)
        return cls(
            users=users,
            ledger=LikeLedger(
                decisions,
                SuperLikeUsageRepository(database),
                users,
                settings,
                clock=clock,
            ),
            detector=MatchDetector(decisions, matches, conversations, clock=clock),
            dispatcher=NotificationDispatcher(
                notifications,
                timeout_seconds=settings.notification_dispatch_timeout_seconds,
                clock=clock,
            ),
            matches=matches,
            conversations=conversations,
            notifications=notifications,
            settings=settings,
            clock=clock,
        )

    @property
    def ledger(self) -> LikeLedger:
        return self._ledger

    @property
    def detector(self) -> MatchDetector:
        return self._detector

    # -- write side -----------------------------------------------------

    async def record_like(self, actor_id: str, target_id: str, kind: LikeKind = "like") -> LikeOutcome:
        action = _like_action(kind)
        try:
            actor = await self._ledger.resolve_actor(actor_id, target_id)
            target = await self._ledger.resolve_target(target_id)

            existing = await self._ledger.existing_decision(actor_id, target_id)
            if existing is not None:
                if existing.action.is_like:
                    await self._repair(actor, target, existing.action)
                raise duplicate_error(existing)

            await self._ledger.record_like(actor, target_id, action)
            outcome = await self._detector.check_and_create_match(actor_id, target_id)
        except StorageUnavailableRepositoryError as exc:
            LOGGER.error("Like %s -> %s aborted: %s", actor_id, target_id, exc)
            raise StorageUnavailable() from exc

        is_super_like = action == DecisionAction.SUPER_LIKE
        if outcome.is_match:
            if outcome.created:
                await self._dispatch(
                    self._dispatcher.match_events(actor, target, outcome, is_super_like=is_super_like)
                )
        else:
            await self._dispatch(self._dispatcher.like_events(actor, target_id, is_super_like=is_super_like))

        remaining = await self._remaining_or_none(actor) if is_super_like else None
        return LikeOutcome(
            kind=kind,
            is_super_like=is_super_like,
            is_match=outcome.is_match,
            match_created=outcome.created,
            match_id=outcome.match_id,
            conversation_id=outcome.conversation_id,
            super_likes_remaining=remaining,
        )

    async def record_pass(self, actor_id: str, target_id: str) -> PassOutcome:
        try:
            actor = await self._ledger.resolve_actor(actor_id, target_id)
            await self._ledger.resolve_target(target_id)
            existing = await self._ledger.existing_decision(actor_id, target_id)
            if existing is not None:
                raise duplicate_error(existing)
            record = await self._ledger.record_pass(actor, target_id)
        except StorageUnavailableRepositoryError as exc:
            LOGGER.error("Pass %s -> %s aborted: %s", actor_id, target_id, exc)
            raise StorageUnavailable() from exc
        return PassOutcome(target_id=record.target_id, created_at=record.created_at)

    async def check_and_create_match(self, actor_id: str, target_id: str) -> MatchOutcome:
        """Re-run match detection for a pair; used for retries after partial failures."""
        try:
            return await self._detector.check_and_create_match(actor_id, target_id)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc

    async def _repair(self, actor: UserAccount, target: UserAccount, action: DecisionAction) -> None:
        """Finish the side effects of a like whose first attempt stopped after the ledger write."""
        outcome = await self._detector.check_and_create_match(actor.user_id, target.user_id)
        if outcome.created:
            LOGGER.info("Recovered match %s for %s", outcome.match_id, pair_key(actor.user_id, target.user_id))
            await self._dispatch(self._dispatcher.match_events(actor, target, outcome))
        elif not outcome.is_match:
            if await self._notifications.has_like_from(target.user_id, actor.user_id):
                return
            LOGGER.info("Re-sending missing like notification %s -> %s", actor.user_id, target.user_id)
            await self._dispatch(
                self._dispatcher.like_events(
                    actor, target.user_id, is_super_like=action == DecisionAction.SUPER_LIKE
                )
            )

    async def _dispatch(self, events: List[NotificationEvent]) -> None:
        try:
            await self._dispatcher.emit(events)
        except NotificationDispatchFailed as exc:
            LOGGER.error(
                "Notification dispatch failed (%s) for %s: %s",
                exc.reason,
                [event.recipient_id for event in events],
                exc.message,
            )

    async def _remaining_or_none(self, user: UserAccount) -> Optional[int]:
        try:
            return await self._ledger.super_likes_remaining(user)
        except StorageUnavailableRepositoryError:
            return None

    # -- read side ------------------------------------------------------

    async def _require_user(self, user_id: str) -> UserAccount:
        user = await self._users.get_by_user_id(user_id)
        if user is None:
            raise InvalidActor()
        return user

    async def super_likes_remaining(self, user_id: str) -> tuple[int, int, datetime]:
        """Return (remaining, allowance, next reset) for ``user_id``."""
        try:
            user = await self._require_user(user_id)
            remaining = await self._ledger.super_likes_remaining(user)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc
        return remaining, daily_allowance(user, self._settings), next_reset(self._clock())

    async def list_matches_for(self, user_id: str) -> List[MatchSummary]:
        try:
            matches = await self._matches.list_for_user(user_id)
            conversations = {c.pair_key: c.conversation_id for c in await self._conversations.list_for_user(user_id)}
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc
        summaries: List[MatchSummary] = []
        for match in matches:
            partner = next((uid for uid in match.user_ids if uid != user_id), None)
            if partner is None:
                continue
            summaries.append(
                MatchSummary(
                    match_id=match.match_id,
                    partner_id=partner,
                    matched_at=match.created_at,
                    conversation_id=conversations.get(match.pair_key),
                )
            )
        return summaries

    async def list_conversations_for(self, user_id: str) -> List[ConversationSummary]:
        try:
            conversations = await self._conversations.list_for_user(user_id)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc
        summaries: List[ConversationSummary] = []
        for conversation in conversations:
            partner = next((uid for uid in conversation.participants if uid != user_id), None)
            if partner is None:
                continue
            summaries.append(ConversationSummary(**conversation.model_dump(), partner_id=partner))
        return summaries

    async def list_notifications_for(self, user_id: str, limit: Optional[int] = None) -> List[NotificationEvent]:
        size = max(1, min(int(limit or self._settings.notifications_page_size), 200))
        try:
            return await self._notifications.list_for_recipient(user_id, size)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc

    async def mark_notification_read(self, notification_id: str, user_id: str) -> bool:
        try:
            return await self._notifications.mark_read(notification_id, user_id)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc

    async def mark_all_notifications_read(self, user_id: str) -> int:
        try:
            return await self._notifications.mark_all_read(user_id)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc

    async def unread_notification_count(self, user_id: str) -> int:
        try:
            return await self._notifications.count_unread(user_id)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc


def get_interaction_engine() -> InteractionEngine:
    return InteractionEngine.from_database(get_db(), settings=get_settings())


__all__ = ["InteractionEngine", "InteractionError", "get_interaction_engine"]
