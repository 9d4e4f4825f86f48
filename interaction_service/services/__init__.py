from .conversation_service import ConversationService, get_conversation_service
from .discovery_service import DiscoveryService, get_discovery_service
from .identity import IdentityService, get_identity_service
from .interaction_engine import InteractionEngine, get_interaction_engine

__all__ = [
    "ConversationService",
    "DiscoveryService",
    "IdentityService",
    "InteractionEngine",
    "get_conversation_service",
    "get_discovery_service",
    "get_identity_service",
    "get_interaction_engine",
]
