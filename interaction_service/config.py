import os
from functools import lru_cache
from pathlib import Path as _Path

from pydantic import BaseModel, Field

# Fallback: attempt to load .env early if not already loaded
try:
    from dotenv import load_dotenv as _load_dotenv
    _load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=False)
except ImportError:
    pass


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _redis_pubsub_enabled_default() -> bool:
    explicit = os.getenv("REDIS_PUBSUB_ENABLED")
    if explicit is not None:
        return explicit.lower() in ("1", "true", "yes")
    return bool(os.getenv("REDIS_URL"))


class Settings(BaseModel):
    # Support multiple common env var names for Mongo connection string
    mongo_uri: str = Field(
        default_factory=lambda: (
            os.getenv("MONGO_URI")
            or os.getenv("MONGODB_URI")
            or os.getenv("MONGO_URL")
            or ""
        )
    )
    mongo_db: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "interactions"))
    # Optional: provide a non-SRV fallback URI (e.g., mongodb://127.0.0.1:27017)
    mongo_alt_uri: str = Field(default_factory=lambda: os.getenv("MONGO_ALT_URI", ""))
    mongo_direct: bool = Field(default_factory=lambda: _env_flag("MONGO_DIRECT"))
    mongo_server_selection_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "3000"))
    )
    mongo_connect_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "3000"))
    )
    mongo_socket_timeout_ms: int = Field(
        default_factory=lambda: int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "5000"))
    )

    cors_origins: str = Field(
        default_factory=lambda: (
            os.getenv("CORS_ORIGINS")
            or os.getenv("CORS_ORIGIN")
            or "http://localhost:5173,http://127.0.0.1:5173"
        )
    )
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8081")))
    slow_request_ms: int = Field(default_factory=lambda: int(os.getenv("SLOW_REQUEST_MS", "800")))

    # Identity collaborator: bearer tokens are minted elsewhere and verified here
    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "change-me"))
    admin_token: str = Field(default_factory=lambda: os.getenv("ADMIN_TOKEN", ""))

    # Redis (realtime pub/sub)
    redis_url: str = Field(default_factory=lambda: os.getenv("REDIS_URL", ""))
    redis_pubsub_enabled: bool = Field(default_factory=_redis_pubsub_enabled_default)
    redis_pubsub_prefix: str = Field(default_factory=lambda: os.getenv("REDIS_PUBSUB_PREFIX", "ix"))

    # Interaction rules
    super_like_daily_allowance: int = Field(
        default_factory=lambda: int(os.getenv("SUPER_LIKE_DAILY_ALLOWANCE", "1"))
    )
    premium_super_like_daily_allowance: int = Field(
        default_factory=lambda: int(os.getenv("PREMIUM_SUPER_LIKE_DAILY_ALLOWANCE", "5"))
    )
    notification_dispatch_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("NOTIFICATION_DISPATCH_TIMEOUT_SECONDS", "2.0"))
    )
    discovery_page_size: int = Field(default_factory=lambda: int(os.getenv("DISCOVERY_PAGE_SIZE", "12")))
    notifications_page_size: int = Field(
        default_factory=lambda: int(os.getenv("NOTIFICATIONS_PAGE_SIZE", "50"))
    )

    @property
    def allow_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
