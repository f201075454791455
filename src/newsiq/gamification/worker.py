"""Gamification arq worker: achievement re-evaluation jobs.

Import path for arq CLI: arq newsiq.gamification.worker.WorkerSettings
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsiq.config import get_settings
from newsiq.database import close_db, get_engine, init_db
from newsiq.gamification.trigger_engine import (
    reevaluate_user,
    update_achievements_for_existing_users,
)

logger = logging.getLogger(__name__)


def _open_session() -> AsyncSession:
    """New session on the worker's engine. Use as an async context manager."""
    factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return factory()


async def gamification_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize Redis + DB connections on worker startup."""
    settings = get_settings()
    await init_db(settings.database_url)

    ctx["redis"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    logger.info("Gamification worker started")


async def gamification_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    redis_client: aioredis.Redis | None = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Gamification worker shut down")


async def reevaluate_all_achievements(ctx: dict) -> dict[str, int]:  # type: ignore[type-arg]
    """Backfill achievements for every existing user."""
    async with _open_session() as db:
        batch = await update_achievements_for_existing_users(db, ctx.get("redis"))
    return {"users_processed": batch.users_processed, "failures": batch.failures}


async def reevaluate_user_achievements(ctx: dict, user_id: str) -> list[str]:  # type: ignore[type-arg]
    """Backfill achievements for a single user. Returns the names newly granted."""
    async with _open_session() as db:
        awarded = await reevaluate_user(db, ctx.get("redis"), uuid.UUID(user_id))
    return [a.name for a in awarded]


class WorkerSettings:
    """arq worker settings for gamification jobs."""

    functions = [reevaluate_all_achievements, reevaluate_user_achievements]
    on_startup = gamification_startup
    on_shutdown = gamification_shutdown
    max_jobs = 4
    job_timeout = 600
