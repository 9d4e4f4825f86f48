import json

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..models.notification import MarkReadResponse, NotificationsResponse, UnreadCountResponse
from ..models.user import UserAccount
from ..services.errors import InteractionError
from ..services.interaction_engine import InteractionEngine, get_interaction_engine
from ..utils.http import declined, weak_etag
from .auth import require_current_user

router = APIRouter()


@router.get("/notifications", response_model=NotificationsResponse)
async def list_notifications(
    request: Request,
    response: Response,
    limit: int = 0,
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        notifications = await engine.list_notifications_for(current_user.user_id, limit or None)
    except InteractionError as exc:
        raise declined(exc) from exc
    payload = NotificationsResponse(
        notifications=notifications,
        unread_count=sum(1 for n in notifications if not n.read),
    )
    raw = json.dumps(payload.model_dump(mode="json"), separators=(",", ":"), sort_keys=True)
    tag = weak_etag(raw)
    response.headers["Cache-Control"] = "private, no-cache"
    response.headers["ETag"] = tag
    if request.headers.get("if-none-match") == tag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": tag})
    return payload


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        count = await engine.unread_notification_count(current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return UnreadCountResponse(unread_count=count)


@router.post("/notifications/read-all", response_model=MarkReadResponse)
async def mark_all_read(
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        updated = await engine.mark_all_notifications_read(current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return MarkReadResponse(updated=updated)


@router.post("/notifications/{notification_id}/read", response_model=MarkReadResponse)
async def mark_read(
    notification_id: str,
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        found = await engine.mark_notification_read(notification_id, current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="notification not found")
    return MarkReadResponse(updated=1)


__all__ = ["router"]
