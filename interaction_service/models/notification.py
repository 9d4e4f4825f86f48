from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, Enum):
    LIKE = "like"
    SUPER_LIKE = "super_like"
    MATCH = "match"


class NotificationPayload(BaseModel):
    actor_id: str
    actor_name: Optional[str] = None
    actor_photo: Optional[str] = None
    is_super_like: bool = False
    match_id: Optional[str] = None
    conversation_id: Optional[str] = None


class NotificationEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    notification_id: str
    recipient_id: str
    kind: NotificationKind
    title: str
    message: str
    payload: NotificationPayload
    read: bool = False
    created_at: datetime


class NotificationsResponse(BaseModel):
    notifications: List[NotificationEvent] = Field(default_factory=list)
    unread_count: int = 0


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadResponse(BaseModel):
    status: Literal["ok"] = "ok"
    updated: int = 0


__all__ = [
    "NotificationKind",
    "NotificationPayload",
    "NotificationEvent",
    "NotificationsResponse",
    "UnreadCountResponse",
    "MarkReadResponse",
]
