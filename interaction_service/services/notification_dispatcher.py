"""Notification Dispatcher: one best-effort event per like, super-like or match."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import List, Optional

from .. import redis_bus
from ..models.match import MatchOutcome
from ..models.notification import NotificationEvent, NotificationKind, NotificationPayload
from ..models.user import UserAccount
from ..repositories.notifications import NotificationRepository
from .errors import NotificationDispatchFailed
from .quota import Clock, utcnow

LOGGER = logging.getLogger("uvicorn.error")


def _name(user: UserAccount) -> str:
    return (user.display_name or "").strip() or "Someone"


class NotificationDispatcher:
    def __init__(
        self,
        notifications: NotificationRepository,
        *,
        timeout_seconds: Optional[float] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._notifications = notifications
        self._timeout = timeout_seconds
        self._clock = clock

    def _event(
        self,
        *,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        message: str,
        payload: NotificationPayload,
    ) -> NotificationEvent:
        return NotificationEvent(
            notification_id=str(uuid.uuid4()),
            recipient_id=recipient_id,
            kind=kind,
            title=title,
            message=message,
            payload=payload,
            read=False,
            created_at=self._clock(),
        )

    def like_events(self, actor: UserAccount, target_id: str, *, is_super_like: bool) -> List[NotificationEvent]:
        payload = NotificationPayload(
            actor_id=actor.user_id,
            actor_name=actor.display_name,
            actor_photo=actor.primary_photo,
            is_super_like=is_super_like,
        )
        if is_super_like:
            return [
                self._event(
                    recipient_id=target_id,
                    kind=NotificationKind.SUPER_LIKE,
                    title="Super Like received!",
                    message=f"{_name(actor)} sent you a Super Like",
                    payload=payload,
                )
            ]
        return [
            self._event(
                recipient_id=target_id,
                kind=NotificationKind.LIKE,
                title="New like!",
                message=f"{_name(actor)} liked your profile",
                payload=payload,
            )
        ]

    def match_events(
        self,
        actor: UserAccount,
        target: UserAccount,
        outcome: MatchOutcome,
        *,
        is_super_like: bool = False,
    ) -> List[NotificationEvent]:
        events = []
        for recipient, other in ((target, actor), (actor, target)):
            events.append(
                self._event(
                    recipient_id=recipient.user_id,
                    kind=NotificationKind.MATCH,
                    title="New match!",
                    message=f"You have a new match with {_name(other)}",
                    payload=NotificationPayload(
                        actor_id=other.user_id,
                        actor_name=other.display_name,
                        actor_photo=other.primary_photo,
                        is_super_like=is_super_like and other is actor,
                        match_id=outcome.match_id,
                        conversation_id=outcome.conversation_id,
                    ),
                )
            )
        return events

    async def emit(self, events: List[NotificationEvent]) -> List[NotificationEvent]:
        """Store and publish ``events``; any failure surfaces as ``NotificationDispatchFailed``."""
        try:
            if self._timeout:
                return await asyncio.wait_for(self._emit(events), timeout=self._timeout)
            return await self._emit(events)
        except asyncio.TimeoutError as exc:
            raise NotificationDispatchFailed("notification dispatch timed out") from exc
        except NotificationDispatchFailed:
            raise
        except Exception as exc:
            raise NotificationDispatchFailed(f"notification dispatch failed: {exc}") from exc

    async def _emit(self, events: List[NotificationEvent]) -> List[NotificationEvent]:
        stored: List[NotificationEvent] = []
        for event in events:
            await self._notifications.insert(event)
            stored.append(event)
            await redis_bus.publish_to_user(
                event.recipient_id,
                {"type": "notification_created", "notification": event.model_dump(mode="json")},
            )
        return stored


__all__ = ["NotificationDispatcher"]
