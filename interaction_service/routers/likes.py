from fastapi import APIRouter, Depends, HTTPException, status

from ..models.likes import (
    LikeRequest,
    LikeResponse,
    PassRequest,
    PassResponse,
    SuperLikesResponse,
)
from ..models.match import MatchesResponse
from ..models.user import DiscoveryResponse, UserAccount
from ..services.discovery_service import DiscoveryService, get_discovery_service
from ..services.errors import InteractionError
from ..services.interaction_engine import InteractionEngine, get_interaction_engine
from ..utils.http import declined
from .auth import require_current_user

router = APIRouter()


def _target(raw: str) -> str:
    target_user_id = (raw or "").strip()
    if not target_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="target_user_id required")
    return target_user_id


@router.post("/likes", response_model=LikeResponse)
async def create_like(
    payload: LikeRequest,
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    target_user_id = _target(payload.target_user_id)
    try:
        outcome = await engine.record_like(current_user.user_id, target_user_id, payload.kind)
    except InteractionError as exc:
        raise declined(exc) from exc
    return LikeResponse(**outcome.model_dump())


@router.post("/passes", response_model=PassResponse)
async def create_pass(
    payload: PassRequest,
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    target_user_id = _target(payload.target_user_id)
    try:
        outcome = await engine.record_pass(current_user.user_id, target_user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return PassResponse(target_id=outcome.target_id)


@router.get("/likes/super-likes", response_model=SuperLikesResponse)
async def get_super_likes(
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        remaining, allowance, resets_at = await engine.super_likes_remaining(current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return SuperLikesResponse(remaining=remaining, allowance=allowance, resets_at=resets_at)


@router.get("/matches", response_model=MatchesResponse)
async def list_matches(
    current_user: UserAccount = Depends(require_current_user),
    engine: InteractionEngine = Depends(get_interaction_engine),
):
    try:
        matches = await engine.list_matches_for(current_user.user_id)
    except InteractionError as exc:
        raise declined(exc) from exc
    return MatchesResponse(matches=matches)


@router.get("/discovery", response_model=DiscoveryResponse)
async def discovery_feed(
    limit: int = 0,
    offset: int = 0,
    current_user: UserAccount = Depends(require_current_user),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        candidates = await service.list_candidates(
            current_user.user_id, limit=limit or None, offset=max(0, offset)
        )
    except InteractionError as exc:
        raise declined(exc) from exc
    start = max(0, offset)
    return DiscoveryResponse(candidates=candidates, offset=start, next_offset=start + len(candidates))


__all__ = ["router"]
