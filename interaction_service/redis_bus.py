import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from redis.asyncio import Redis

from .config import get_settings

LOGGER = logging.getLogger("uvicorn.error")

_client: Optional[Redis] = None


def _channel(topic: str) -> str:
    prefix = (get_settings().redis_pubsub_prefix or "").strip()
    return f"{prefix}.{topic}" if prefix else topic


def user_topic(user_id: str) -> str:
    return f"user.{user_id}"


def is_enabled() -> bool:
    settings = get_settings()
    return bool(settings.redis_pubsub_enabled and settings.redis_url)


async def _ensure_client() -> Optional[Redis]:
    global _client
    if _client is not None:
        return _client
    if not is_enabled():
        return None
    try:
        client = Redis.from_url(
            get_settings().redis_url,
            encoding="utf-8",
            decode_responses=False,
        )
        await client.ping()
        _client = client
    except Exception as exc:
        LOGGER.warning("[Events] redis unavailable: %s", exc)
        _client = None
    return _client


async def publish(topic: str, event: Dict[str, Any]) -> bool:
    """Best-effort publish; returns False when the bus is disabled or the send failed."""
    client = await _ensure_client()
    if not client:
        return False
    try:
        payload = json.dumps(event, separators=(",", ":"), default=str).encode("utf-8")
        await client.publish(_channel(topic), payload)
    except Exception as exc:
        LOGGER.warning("[Events] publish to %s failed: %s", topic, exc)
        return False
    return True


async def publish_to_user(user_id: str, event: Dict[str, Any]) -> bool:
    return await publish(user_topic(user_id), event)


async def subscribe(topic: str) -> AsyncIterator[Dict[str, Any]]:
    """Yield decoded events published on ``topic`` until the caller stops iterating."""
    client = await _ensure_client()
    if not client:
        return
    pubsub = client.pubsub()
    try:
        await pubsub.subscribe(_channel(topic))
        async for message in pubsub.listen():
            if message.get("type") != "message":
                continue
            raw_data = message.get("data")
            try:
                if isinstance(raw_data, (bytes, bytearray)):
                    payload = json.loads(raw_data.decode("utf-8"))
                else:
                    payload = json.loads(raw_data)
            except (TypeError, ValueError):
                continue
            yield payload
    except asyncio.CancelledError:
        raise
    finally:
        try:
            await pubsub.aclose()
        except Exception:
            pass


async def stop() -> None:
    global _client
    if _client is not None:
        try:
            await _client.aclose()
        except Exception:
            pass
        _client = None


async def get_client() -> Optional[Redis]:
    """Return the shared Redis client, if configured."""
    return await _ensure_client()
