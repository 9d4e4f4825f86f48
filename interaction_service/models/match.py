from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def pair_key(user_a: str, user_b: str) -> str:
    """Canonical key for an unordered pair of user ids."""
    first, second = sorted((user_a, user_b))
    return f"{first}|{second}"


class MatchRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    match_id: str
    pair_key: str
    user_ids: List[str]
    status: Literal["mutual"] = "mutual"
    created_at: datetime


class MatchOutcome(BaseModel):
    status: Literal["no_match", "match_created"]
    # True only for the call that actually inserted the match
    created: bool = False
    match_id: Optional[str] = None
    conversation_id: Optional[str] = None

    @property
    def is_match(self) -> bool:
        return self.status == "match_created"


class MatchSummary(BaseModel):
    match_id: str
    partner_id: str
    matched_at: datetime
    conversation_id: Optional[str] = None


class MatchesResponse(BaseModel):
    matches: List[MatchSummary] = Field(default_factory=list)


class MessagePreview(BaseModel):
    message_id: str
    sender_id: str
    text: str
    created_at: datetime


class Conversation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    conversation_id: str
    pair_key: str
    participants: List[str]
    match_id: Optional[str] = None
    created_at: datetime
    last_activity_at: datetime
    last_message: Optional[MessagePreview] = None


class ConversationSummary(Conversation):
    partner_id: str


class ConversationsResponse(BaseModel):
    conversations: List[ConversationSummary] = Field(default_factory=list)


class MessageCreateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=4000)


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: str
    conversation_id: str
    sender_id: str
    text: str
    created_at: datetime


class MessagesResponse(BaseModel):
    messages: List[Message] = Field(default_factory=list)


__all__ = [
    "pair_key",
    "MatchRecord",
    "MatchOutcome",
    "MatchSummary",
    "MatchesResponse",
    "MessagePreview",
    "Conversation",
    "ConversationSummary",
    "ConversationsResponse",
    "MessageCreateRequest",
    "Message",
    "MessagesResponse",
]
