from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime, timedelta
from pathlib import Path
import sys

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from interaction_service.main import app
from interaction_service.config import get_settings
from interaction_service.db import close_mongo_connection, connect_to_mongo, get_db
from interaction_service.db.collections import USERS_COLLECTION
from interaction_service.services.interaction_engine import InteractionEngine

TEST_SECRET = "test-secret"


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "interactions-test")
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("REDIS_PUBSUB_ENABLED", raising=False)
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("interaction_service.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest_asyncio.fixture
async def database(mongo_client: AsyncMongoMockClient):
    await connect_to_mongo()
    yield get_db()
    await close_mongo_connection()


@pytest_asyncio.fixture
async def api_client(database) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 14, 12, 0, 0))


@pytest.fixture
def engine(database, clock: FrozenClock) -> InteractionEngine:
    return InteractionEngine.from_database(database, settings=get_settings(), clock=clock)


@pytest.fixture
def seed_user(database) -> Callable[..., Awaitable[str]]:
    async def _seed(
        user_id: str,
        *,
        display_name: str | None = None,
        is_premium: bool = False,
        is_active: bool = True,
        photos: list[str] | None = None,
        last_seen_at: datetime | None = None,
    ) -> str:
        await database[USERS_COLLECTION].insert_one(
            {
                "user_id": user_id,
                "display_name": display_name or user_id.title(),
                "photos": photos or [],
                "is_premium": is_premium,
                "is_active": is_active,
                "last_seen_at": last_seen_at or datetime(2026, 3, 1, 9, 0, 0),
            }
        )
        return user_id

    return _seed


def auth_headers(user_id: str) -> dict[str, str]:
    token = jwt.encode({"sub": user_id}, TEST_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[str], dict[str, str]]:
    return auth_headers
