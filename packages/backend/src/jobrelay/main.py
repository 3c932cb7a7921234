"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The three long-lived components (presence registry, connection
manager, persistence service) are built here, once per app, and parked
on app.state. Lifespan manages Redis and the database engine.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobrelay import __version__
from jobrelay.api import api_router
from jobrelay.config import settings
from jobrelay.realtime.channel import ConnectionManager
from jobrelay.realtime.presence import PresenceRegistry, RedisPresenceRegistry
from jobrelay.services.persistence import Persistence

logger = structlog.get_logger()


def configure_logging() -> None:
    """Console output in development, JSON lines everywhere else."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Redis is optional unless presence lives there.
    """
    logger.info(
        "jobrelay.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        presence_backend=settings.presence_backend,
    )

    from jobrelay.realtime.redis_pool import close_redis, init_redis
    try:
        redis = await init_redis()
        logger.info("jobrelay.redis_connected", url=settings.redis_url)
    except Exception as e:
        await close_redis()
        if settings.presence_backend == "redis":
            raise
        logger.warning("jobrelay.redis_unavailable", error=str(e))
    else:
        if settings.presence_backend == "redis":
            app.state.presence = RedisPresenceRegistry(redis)

    yield

    logger.info("jobrelay.shutdown")
    await close_redis()

    from jobrelay.db.engine import engine
    await engine.dispose()


def create_app(persistence: Optional[Persistence] = None) -> FastAPI:
    """Build and return the FastAPI application.

    persistence defaults to the PostgreSQL-backed SqlPersistence.
    """
    app = FastAPI(
        title="JobRelay",
        description="Real-time job board notifications: postings, applications, chat",
        version=__version__,
        lifespan=lifespan,
    )

    if persistence is None:
        from jobrelay.db.engine import async_session_factory
        from jobrelay.services.persistence import SqlPersistence

        persistence = SqlPersistence(async_session_factory)

    app.state.presence = PresenceRegistry()
    app.state.channel = ConnectionManager()
    app.state.persistence = persistence

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from jobrelay.middleware.rate_limit import RateLimitMiddleware
    from jobrelay.middleware.request_id import RequestIdMiddleware
    from jobrelay.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        write_rpm=settings.rate_limit_write_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    from jobrelay.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


configure_logging()

# Default app instance (used by uvicorn: jobrelay.main:app)
app = create_app()
