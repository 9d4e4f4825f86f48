from fastapi import APIRouter, Depends, HTTPException, status

from ..models.match import (
    ConversationsResponse,
    Message,
    MessageCreateRequest,
    MessagesResponse,
)
from ..models.user import UserAccount
from ..repositories.exceptions import NotFoundRepositoryError
from ..services.conversation_service import ConversationService, get_conversation_service
from ..services.errors import InteractionError
from ..services.interaction_engine import InteractionEngine, get_interaction_engine
from ..utils.http import declined
from .auth import require_current_user

router = APIRouter()


@router.get("/conversations", response_model=ConversationsResponse)
async def list_conversations(
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        conversations = await engine.list_conversations_for(current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return ConversationsResponse(conversations=conversations)


@router.get("/conversations/{conversation_id}/messages", response_model=MessagesResponse)
async def list_messages(
    conversation_id: str,
    limit: int = 100,
    current_user: UserAccount = Depends(require_current_user),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        messages = await service.list_messages(conversation_id, current_user.user_id, limit)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="conversation not found") from None
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except InteractionError as exc:
        raise declined(exc) from exc
    return MessagesResponse(messages=messages)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    body: MessageCreateRequest,
    current_user: UserAccount = Depends(require_current_user),
    service: ConversationService = Depends(get_conversation_service),
):
    try:
        return await service.send_message(conversation_id, current_user.user_id, body.text)
    except NotFoundRepositoryError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="conversation not found") from None
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InteractionError as exc:
        raise declined(exc) from exc


__all__ = ["router"]
