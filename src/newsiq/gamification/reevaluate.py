"""Standalone achievement backfill.

Re-runs every achievement threshold check for existing users, granting
whatever they already qualify for. Safe to run repeatedly.

Usage: python -m newsiq.gamification.reevaluate [--user UUID]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from newsiq.config import get_settings
from newsiq.database import close_db, get_engine, init_db
from newsiq.gamification.trigger_engine import reevaluate_user, update_achievements_for_existing_users

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backfill NewsIQ achievements for existing users")
    parser.add_argument("--user", type=uuid.UUID, help="only re-evaluate this user id")
    parser.add_argument(
        "--no-publish",
        action="store_true",
        help="do not publish unlock events to Redis",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Run the backfill. Returns a process exit code."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    settings = get_settings()
    await init_db(settings.database_url)
    session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)

    redis_client = None
    if settings.redis_url and not args.no_publish:
        redis_client = aioredis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)

    try:
        async with session_factory() as db:
            if args.user is not None:
                awarded = await reevaluate_user(db, redis_client, args.user)
                logger.info("User %s: granted %s", args.user, [a.name for a in awarded])
                return 0

            batch = await update_achievements_for_existing_users(db, redis_client)
            return 1 if batch.failures else 0
    finally:
        if redis_client is not None:
            await redis_client.aclose()
        await close_db()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
