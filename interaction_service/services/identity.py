"""Bearer-token identity: resolves the calling user from a JWT minted by the auth collaborator."""

from __future__ import annotations

from typing import Any, Dict, Optional

import jwt

from ..config import get_settings
from ..db import get_db
from ..models.user import UserAccount
from ..repositories.users import UserAccountRepository


class IdentityService:
    def __init__(self, repository: UserAccountRepository, *, jwt_secret: str) -> None:
        self._repository = repository
        self._jwt_secret = jwt_secret

    def decode_token(self, token: str) -> Optional[Dict[str, Any]]:
        try:
            return jwt.decode(token, self._jwt_secret, algorithms=["HS256"])
        except jwt.PyJWTError:
            return None

    async def get_user_from_token(self, token: str) -> Optional[UserAccount]:
        if not token:
            return None
        payload = self.decode_token(token)
        if not payload:
            return None
        user_id = str(payload.get("sub") or "").strip()
        if not user_id:
            return None
        return await self._repository.get_by_user_id(user_id)


def get_identity_service() -> IdentityService:
    return IdentityService(UserAccountRepository(get_db()), jwt_secret=get_settings().jwt_secret)


__all__ = ["IdentityService", "get_identity_service"]
