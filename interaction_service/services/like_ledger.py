"""Like Ledger: validates and persists one directional decision."""

from __future__ import annotations

import logging
from typing import Optional, Set

from ..config import Settings
from ..models.likes import DecisionAction, DecisionRecord
from ..models.user import UserAccount
from ..repositories.decisions import DecisionRepository, SuperLikeUsageRepository
from ..repositories.exceptions import DuplicateKeyRepositoryError, RepositoryError
from ..repositories.users import UserAccountRepository
from .errors import DuplicateDecision, InvalidActor, QuotaExceeded, UnknownTarget
from .quota import Clock, daily_allowance, quota_day, utcnow

LOGGER = logging.getLogger("uvicorn.error")


def duplicate_error(existing: Optional[DecisionRecord]) -> DuplicateDecision:
    if existing is not None and existing.action == DecisionAction.PASS:
        return DuplicateDecision("You already passed on this profile")
    return DuplicateDecision()


class LikeLedger:
    def __init__(
        self,
        decisions: DecisionRepository,
        usage: SuperLikeUsageRepository,
        users: UserAccountRepository,
        settings: Settings,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._decisions = decisions
        self._usage = usage
        self._users = users
        self._settings = settings
        self._clock = clock

    async def resolve_actor(self, actor_id: str, target_id: str) -> UserAccount:
        if not actor_id or actor_id == target_id:
            raise InvalidActor("You cannot like or pass on yourself" if actor_id else None)
        actor = await self._users.get_by_user_id(actor_id)
        if actor is None or not actor.is_active:
            raise InvalidActor()
        return actor

    async def resolve_target(self, target_id: str) -> UserAccount:
        target = await self._users.get_by_user_id(target_id) if target_id else None
        if target is None or not target.is_active:
            raise UnknownTarget()
        return target

    async def existing_decision(self, actor_id: str, target_id: str) -> Optional[DecisionRecord]:
        return await self._decisions.get_decision(actor_id, target_id)

    async def record_like(
        self,
        actor: UserAccount,
        target_id: str,
        action: DecisionAction,
    ) -> DecisionRecord:
        """Insert a like or super-like after the actor and target were resolved.

        A super-like first reserves a slot of the actor's daily allowance; the
        slot is handed back if the decision itself is declined.
        """

        now = self._clock()
        day = quota_day(now)
        reserved = False
        if action == DecisionAction.SUPER_LIKE:
            allowance = daily_allowance(actor, self._settings)
            reserved = await self._usage.reserve(actor.user_id, day, allowance, now)
            if not reserved:
                raise QuotaExceeded()

        try:
            record = await self._decisions.insert_decision(
                actor_id=actor.user_id,
                target_id=target_id,
                action=action,
                created_at=now,
            )
        except DuplicateKeyRepositoryError:
            if reserved:
                await self._release(actor.user_id, day)
            existing = await self._decisions.get_decision(actor.user_id, target_id)
            raise duplicate_error(existing) from None
        except RepositoryError:
            # The write may have committed before the error surfaced
            if reserved and not await self._decision_stored(actor.user_id, target_id):
                await self._release(actor.user_id, day)
            raise

        await self.record_profile_view(actor.user_id, target_id)
        return record

    async def record_pass(self, actor: UserAccount, target_id: str) -> DecisionRecord:
        now = self._clock()
        try:
            record = await self._decisions.insert_decision(
                actor_id=actor.user_id,
                target_id=target_id,
                action=DecisionAction.PASS,
                created_at=now,
            )
        except DuplicateKeyRepositoryError:
            existing = await self._decisions.get_decision(actor.user_id, target_id)
            raise duplicate_error(existing) from None
        await self.record_profile_view(actor.user_id, target_id)
        return record

    async def record_profile_view(self, viewer_id: str, viewed_id: str) -> None:
        try:
            await self._decisions.record_profile_view(viewer_id, viewed_id, self._clock())
        except Exception as exc:
            LOGGER.warning("Profile view %s -> %s not recorded: %s", viewer_id, viewed_id, exc)

    async def super_likes_remaining(self, user: UserAccount) -> int:
        used = await self._usage.used(user.user_id, quota_day(self._clock()))
        return max(0, daily_allowance(user, self._settings) - used)

    async def decided_target_ids(self, actor_id: str) -> Set[str]:
        return await self._decisions.decided_target_ids(actor_id)

    async def _decision_stored(self, actor_id: str, target_id: str) -> bool:
        try:
            return await self._decisions.get_decision(actor_id, target_id) is not None
        except RepositoryError as exc:
            LOGGER.warning("Cannot confirm decision %s -> %s, keeping super-like slot: %s", actor_id, target_id, exc)
            return True

    async def _release(self, user_id: str, day: str) -> None:
        try:
            await self._usage.release(user_id, day)
        except Exception as exc:
            LOGGER.error("Failed to release super-like slot for %s on %s: %s", user_id, day, exc)


__all__ = ["LikeLedger", "duplicate_error"]
