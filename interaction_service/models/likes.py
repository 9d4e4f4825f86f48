from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class DecisionAction(str, Enum):
    LIKE = "like"
    SUPER_LIKE = "super_like"
    PASS = "pass"

    @property
    def is_like(self) -> bool:
        return self in (DecisionAction.LIKE, DecisionAction.SUPER_LIKE)


LikeKind = Literal["like", "super_like"]
LIKE_ACTIONS = (DecisionAction.LIKE.value, DecisionAction.SUPER_LIKE.value)


class DecisionRecord(BaseModel):
    """A stored like, super-like or pass from actor to target."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    actor_id: str
    target_id: str
    action: DecisionAction
    created_at: datetime


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="target_user_id", min_length=1)
    kind: LikeKind = "like"


class PassRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_user_id: str = Field(alias="target_user_id", min_length=1)


class LikeOutcome(BaseModel):
    kind: LikeKind
    is_super_like: bool
    is_match: bool = False
    match_created: bool = False
    match_id: Optional[str] = None
    conversation_id: Optional[str] = None
    super_likes_remaining: Optional[int] = None


class LikeResponse(LikeOutcome):
    status: Literal["ok"] = "ok"


class PassOutcome(BaseModel):
    target_id: str
    created_at: datetime


class PassResponse(BaseModel):
    status: Literal["ok"] = "ok"
    target_id: str


class SuperLikesResponse(BaseModel):
    remaining: int
    allowance: int
    resets_at: datetime


__all__ = [
    "DecisionAction",
    "DecisionRecord",
    "LikeKind",
    "LIKE_ACTIONS",
    "LikeRequest",
    "PassRequest",
    "LikeOutcome",
    "LikeResponse",
    "PassOutcome",
    "PassResponse",
    "SuperLikesResponse",
]
