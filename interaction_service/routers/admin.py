from fastapi import APIRouter, HTTPException

from ..config import get_settings
from ..db import get_db, is_connected
from ..db.indexes import ensure_indexes as ensure_interaction_indexes

router = APIRouter()


@router.post("/admin/ensure-indexes")
async def ensure_indexes(token: str = ""):
    """Create or confirm every interaction index. Idempotent."""
    admin_token = get_settings().admin_token
    if admin_token and token != admin_token:
        raise HTTPException(status_code=401, detail="unauthorized")
    await ensure_interaction_indexes(get_db())
    return {"ok": True}


@router.get("/health/db")
async def db_health():
    return {
        "mongo": "connected" if is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }


__all__ = ["router"]
