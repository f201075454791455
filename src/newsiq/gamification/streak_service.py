"""Reading streak tracking on calendar days."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import ReadingStreak
from newsiq.gamification.achievement_service import (
    STREAK_HUNTER,
    AchievementAward,
    check_and_award_achievement,
)

logger = logging.getLogger(__name__)

STREAK_HUNTER_DAYS = 7


def get_today(now: datetime | None = None) -> date:
    """Current calendar date in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.date()


def is_yesterday(last_read: date, today: date) -> bool:
    """True when the two calendar dates are exactly one day apart."""
    return abs((today - last_read).days) == 1


def next_streak(current: int, last_read: date, today: date) -> int:
    """Streak value after a read on ``today`` given the previous read date."""
    if is_yesterday(last_read, today):
        return current + 1
    if last_read == today:
        return current
    return 1


async def get_reading_streak(db: AsyncSession, user_id: uuid.UUID) -> ReadingStreak | None:
    result = await db.execute(
        select(ReadingStreak)
        .where(ReadingStreak.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def check_streak_threshold(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    current_streak: int,
) -> AchievementAward | None:
    """Grant Streak Hunter once the streak reaches a full week."""
    if current_streak >= STREAK_HUNTER_DAYS:
        return await check_and_award_achievement(db, redis, user_id, STREAK_HUNTER)
    return None


async def update_reading_streak(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    today: date | None = None,
    awarded: list[AchievementAward] | None = None,
) -> bool:
    """Record a qualifying read for ``today`` and advance the streak.

    - no row: create with current = longest = 1
    - row without a last read date: reset to 1
    - last read yesterday: +1
    - last read today: unchanged, timestamps refreshed
    - older gap: back to 1

    Returns False (after logging) on storage failure.
    """
    if today is None:
        today = get_today()
    now = datetime.now(timezone.utc)

    try:
        streak = await get_reading_streak(db, user_id)

        if streak is None:
            db.add(ReadingStreak(
                user_id=user_id,
                current_streak=1,
                longest_streak=1,
                last_read_date=today,
                created_at=now,
                updated_at=now,
            ))
            await db.commit()
            logger.info("Started reading streak for user %s", user_id)
            return True

        if streak.last_read_date is None:
            streak.current_streak = 1
            streak.longest_streak = 1
            streak.last_read_date = today
            streak.updated_at = now
            await db.commit()
            return True

        new_streak = next_streak(streak.current_streak or 0, streak.last_read_date, today)
        streak.current_streak = new_streak
        streak.longest_streak = max(streak.longest_streak or 0, new_streak)
        streak.last_read_date = today
        streak.updated_at = now
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to update reading streak for user %s", user_id)
        return False

    logger.info("Updated reading streak for user %s to %d days", user_id, new_streak)

    award = await check_streak_threshold(db, redis, user_id, new_streak)
    if award is not None and award.awarded and awarded is not None:
        awarded.append(award)
    return True
