import hashlib
import json
from typing import Any

from fastapi import HTTPException

from ..services.errors import InteractionError

__all__ = ["weak_etag", "declined"]


def weak_etag(payload: Any) -> str:
    """Return a deterministic weak ETag for a JSON-serializable payload or string.
    Accepts dict/list/str/bytes; dict/list will be normalized to a compact JSON string with sorted keys.
    """
    if isinstance(payload, (dict, list)):
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str)
    elif isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload).decode("utf-8", errors="ignore")
    else:
        raw = str(payload)
    return 'W/"' + hashlib.md5(raw.encode("utf-8")).hexdigest() + '"'


def declined(exc: InteractionError) -> HTTPException:
    """Map an engine error to an HTTP error carrying its reason code."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
