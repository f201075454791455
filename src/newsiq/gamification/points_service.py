"""Leaderboard points ledger: additive updates and point-threshold achievements."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import LeaderboardPoints
from newsiq.gamification.achievement_service import (
    POINT_COLLECTOR,
    POINT_MASTER,
    AchievementAward,
    check_and_award_achievement,
)

logger = logging.getLogger(__name__)

POINT_MASTER_THRESHOLD = 1000
POINT_COLLECTOR_THRESHOLD = 500


async def get_leaderboard_points(db: AsyncSession, user_id: uuid.UUID) -> LeaderboardPoints | None:
    result = await db.execute(
        select(LeaderboardPoints)
        .where(LeaderboardPoints.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _increment(db: AsyncSession, user_id: uuid.UUID, amount: int, now: datetime) -> int | None:
    """Atomically add ``amount`` to all three counters. Returns the new total, or None if no row."""
    result = await db.execute(
        update(LeaderboardPoints)
        .where(LeaderboardPoints.user_id == user_id)
        .values(
            points=LeaderboardPoints.points + amount,
            weekly_points=LeaderboardPoints.weekly_points + amount,
            monthly_points=LeaderboardPoints.monthly_points + amount,
            last_updated=now,
        )
        .returning(LeaderboardPoints.points)
    )
    return result.scalar_one_or_none()


async def add_points(db: AsyncSession, user_id: uuid.UUID, amount: int) -> int:
    """Add ``amount`` to the user's ledger row, creating it lazily. Returns the all-time total.

    Raises SQLAlchemyError on storage failure; callers decide whether to swallow it.
    """
    if amount < 0:
        msg = f"Point delta must be non-negative, got {amount}"
        raise ValueError(msg)

    now = datetime.now(timezone.utc)
    total = await _increment(db, user_id, amount, now)
    if total is None:
        db.add(LeaderboardPoints(
            user_id=user_id,
            points=amount,
            weekly_points=amount,
            monthly_points=amount,
            last_updated=now,
        ))
        try:
            await db.commit()
            return amount
        except IntegrityError:
            # Another request created the row first
            await db.rollback()
            total = await _increment(db, user_id, amount, now)
            if total is None:
                raise
    await db.commit()
    return total


async def check_point_thresholds(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    total: int,
) -> AchievementAward | None:
    """Grant the highest point badge reached. Only one branch fires per call."""
    if total >= POINT_MASTER_THRESHOLD:
        return await check_and_award_achievement(db, redis, user_id, POINT_MASTER)
    elif total >= POINT_COLLECTOR_THRESHOLD:
        return await check_and_award_achievement(db, redis, user_id, POINT_COLLECTOR)
    return None


async def update_leaderboard_points(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    points_to_add: int,
    awarded: list[AchievementAward] | None = None,
) -> bool:
    """Add points to all-time, weekly and monthly counters, then check point badges.

    Returns False (after logging) on any failure so the calling action is never blocked.
    Newly unlocked achievements are appended to ``awarded`` when given.
    """
    try:
        total = await add_points(db, user_id, points_to_add)
    except ValueError:
        logger.warning("Rejected point update for user %s: %d", user_id, points_to_add)
        return False
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to update leaderboard points for user %s", user_id)
        return False

    logger.info("Added %d points to user %s (total %d)", points_to_add, user_id, total)

    award = await check_point_thresholds(db, redis, user_id, total)
    if award is not None and award.awarded and awarded is not None:
        awarded.append(award)
    return True
