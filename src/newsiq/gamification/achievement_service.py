"""Achievement catalog lookup and idempotent grants."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.dialect import upsert_insert
from newsiq.db.models import Achievement, UserAchievement
from newsiq.redis_client import publish_event

logger = logging.getLogger(__name__)

AVID_READER = "Avid Reader"
ARTICLE_COLLECTOR = "Article Collector"
STREAK_HUNTER = "Streak Hunter"
QUIZ_MASTER = "Quiz Master"
QUIZ_ENTHUSIAST = "Quiz Enthusiast"
POINT_COLLECTOR = "Point Collector"
POINT_MASTER = "Point Master"


@dataclass(frozen=True)
class AchievementAward:
    """Outcome of a grant attempt. ``awarded`` is False when the user already had it."""

    awarded: bool
    name: str
    description: str


async def get_achievement_by_name(db: AsyncSession, name: str) -> Achievement | None:
    """Fetch an achievement definition by its unique name."""
    result = await db.execute(select(Achievement).where(Achievement.name == name))
    return result.scalar_one_or_none()


async def has_achievement(db: AsyncSession, user_id: uuid.UUID, achievement_id: uuid.UUID) -> bool:
    """Check if user already has a specific achievement."""
    result = await db.execute(
        select(UserAchievement.id).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == achievement_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def check_and_award_achievement(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    name: str,
) -> AchievementAward | None:
    """Ensure exactly one grant of ``name`` exists for ``user_id``.

    Returns None when the achievement is not in the catalog or a query fails.
    The insert ignores conflicts on (user_id, achievement_id), so a concurrent
    grant that wins the race makes this call report ``awarded=False``.
    """
    try:
        achievement = await get_achievement_by_name(db, name)
        if achievement is None:
            logger.warning("Achievement not found: %s", name)
            return None

        if await has_achievement(db, user_id, achievement.id):
            logger.debug("User %s already has achievement %r", user_id, name)
            return AchievementAward(False, achievement.name, achievement.description)

        stmt = upsert_insert(db, UserAchievement).values(
            id=uuid.uuid4(),
            user_id=user_id,
            achievement_id=achievement.id,
            earned_at=datetime.now(timezone.utc),
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
        inserted = (await db.execute(stmt)).rowcount
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to award achievement %r to user %s", name, user_id)
        return None

    if inserted == 0:
        return AchievementAward(False, achievement.name, achievement.description)

    logger.info("Achievement %r awarded to user %s", name, user_id)
    await publish_event(
        redis,
        "pubsub:achievement_unlocked",
        {
            "user_id": str(user_id),
            "achievement_id": str(achievement.id),
            "name": achievement.name,
            "description": achievement.description,
        },
    )
    return AchievementAward(True, achievement.name, achievement.description)


async def list_user_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[UserAchievement]:
    """Achievements earned by a user, most recent first."""
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc())
    )
    return list(result.scalars().all())


async def list_achievements(db: AsyncSession) -> list[Achievement]:
    """Full achievement catalog."""
    result = await db.execute(select(Achievement).order_by(Achievement.name))
    return list(result.scalars().all())
