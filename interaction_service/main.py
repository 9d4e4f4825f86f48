from pathlib import Path as _Path

# Load .env ASAP to ensure settings see env vars before any imports cache them
try:
    from dotenv import load_dotenv as _load_dotenv
    _load_dotenv(dotenv_path=_Path(__file__).resolve().parent.parent / ".env", override=True)
except ImportError:
    pass

import logging
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

try:
    import orjson  # noqa: F401
    from fastapi.responses import ORJSONResponse as _DEFAULT_RESPONSE_CLS
except ImportError:
    from fastapi.responses import JSONResponse as _DEFAULT_RESPONSE_CLS

from . import redis_bus
from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo
from .routers import admin, conversations, events, likes, notifications

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title="Interaction Service API", default_response_class=_DEFAULT_RESPONSE_CLS)
settings = get_settings()

logger.info("[CORS] allow_origins=%s", settings.allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


# Simple slow-request logger
@app.middleware("http")
async def log_slow_requests(request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        logger.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.on_event("startup")
async def startup():
    await connect_to_mongo()
    if redis_bus.is_enabled():
        client = await redis_bus.get_client()
        logger.info("[Events] Redis pub/sub %s", "connected" if client else "unreachable")
    else:
        logger.info("[Events] Redis pub/sub disabled")


@app.on_event("shutdown")
async def shutdown():
    await close_mongo_connection()
    await redis_bus.stop()


# Routers
app.include_router(likes.router, prefix="/api", tags=["likes"])
app.include_router(conversations.router, prefix="/api", tags=["conversations"])
app.include_router(notifications.router, prefix="/api", tags=["notifications"])
app.include_router(events.router, prefix="/api", tags=["events"])
app.include_router(admin.router, prefix="/api", tags=["admin"])


@app.get("/")
async def root():
    return {"status": "interaction-api-ok"}
