from __future__ import annotations

from typing import List, Optional

from ..config import Settings, get_settings
from ..db import get_db
from ..models.user import DiscoveryCandidate
from ..repositories.decisions import DecisionRepository
from ..repositories.exceptions import StorageUnavailableRepositoryError
from ..repositories.users import UserAccountRepository
from .errors import StorageUnavailable


class DiscoveryService:
    """Discovery feed: active profiles the requester has not liked or passed yet."""

    def __init__(
        self,
        users: UserAccountRepository,
        decisions: DecisionRepository,
        settings: Settings,
    ) -> None:
        self._users = users
        self._decisions = decisions
        self._settings = settings

    async def list_candidates(
        self,
        user_id: str,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[DiscoveryCandidate]:
        size = max(1, min(int(limit or self._settings.discovery_page_size), 100))
        try:
            excluded = await self._decisions.decided_target_ids(user_id)
            excluded.add(user_id)
            accounts = await self._users.list_active_excluding(excluded, limit=size, offset=offset)
        except StorageUnavailableRepositoryError as exc:
            raise StorageUnavailable() from exc
        return [
            DiscoveryCandidate(
                user_id=account.user_id,
                display_name=account.display_name,
                photo=account.primary_photo,
                is_premium=account.is_premium,
                last_seen_at=account.last_seen_at,
            )
            for account in accounts
        ]


def get_discovery_service() -> DiscoveryService:
    db = get_db()
    return DiscoveryService(UserAccountRepository(db), DecisionRepository(db), get_settings())


__all__ = ["DiscoveryService", "get_discovery_service"]
