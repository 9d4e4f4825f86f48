"""Repository layer to abstract MongoDB access patterns."""

from .conversations import ConversationRepository
from .decisions import DecisionRepository, SuperLikeUsageRepository
from .matches import MatchRepository
from .notifications import NotificationRepository
from .users import UserAccountRepository

__all__ = [
    "ConversationRepository",
    "DecisionRepository",
    "MatchRepository",
    "NotificationRepository",
    "SuperLikeUsageRepository",
    "UserAccountRepository",
]
