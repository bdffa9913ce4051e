"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from grind.config import get_settings
from grind.database import close_db, init_db
from grind.health.router import router as health_router
from grind.middleware import setup_middleware
from grind.redis_client import close_redis, init_redis
from grind.rooms.router import router as rooms_router
from grind.sessions.router import router as sessions_router
from grind.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.warning("GRIND_REDIS_URL is empty; rate limiting disabled")

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Grind Rooms API",
        description="Focus-session tracking with shared rooms and leaderboards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(rooms_router)
    app.include_router(sessions_router)

    return app


app = create_app()
