"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError

from newsiq.articles.router import router as articles_router
from newsiq.chat.router import router as chat_router
from newsiq.config import get_settings
from newsiq.database import close_db, get_session, init_db
from newsiq.gamification.router import router as gamification_router
from newsiq.gamification.seed import seed_achievements
from newsiq.health.router import router as health_router
from newsiq.middleware import setup_middleware
from newsiq.quizzes.router import router as quizzes_router
from newsiq.redis_client import close_redis, get_redis, init_redis
from newsiq.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)

    if settings.redis_url:
        await init_redis(settings.redis_url)
        try:
            await get_redis().ping()
        except RedisError:
            # Realtime fan-out and rate limiting are optional
            logger.warning("Redis unreachable at %s; continuing without it", settings.redis_url)
            await close_redis()

    # Achievement catalog (idempotent)
    try:
        async for db in get_session():
            await seed_achievements(db)
            break
    except Exception:
        logger.warning("Achievement seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="NewsIQ API",
        description="Backend API for NewsIQ: personalised news, quizzes, achievements and article chat",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(articles_router)
    app.include_router(quizzes_router)
    app.include_router(gamification_router)
    app.include_router(chat_router)

    return app


app = create_app()
