import json

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from .. import redis_bus
from ..models.user import UserAccount
from .auth import require_current_user

router = APIRouter()


@router.get("/events")
async def stream_events(current_user: UserAccount = Depends(require_current_user)):
    """Server-sent events for the caller's notifications and messages."""
    if not redis_bus.is_enabled():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="realtime bus disabled")

    async def _stream():
        yield ": connected\n\n"
        async for event in redis_bus.subscribe(redis_bus.user_topic(current_user.user_id)):
            kind = str(event.get("type") or "message")
            yield f"event: {kind}\ndata: {json.dumps(event, separators=(',', ':'))}\n\n"

    return StreamingResponse(
        _stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


__all__ = ["router"]
