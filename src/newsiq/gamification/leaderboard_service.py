"""Leaderboard reads: ranked per-user stats built from the points ledger.

Each row merges the profile, point counters, reading streak, read count and
quiz stats for one user. Users without a ledger row rank with zero points.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import (
    LeaderboardPoints,
    Profile,
    QuizAttempt,
    ReadingStreak,
    UserArticleInteraction,
)
from newsiq.gamification.points_service import get_leaderboard_points

logger = logging.getLogger(__name__)


def _leaderboard_query() -> Select:
    reads = (
        select(
            UserArticleInteraction.user_id,
            func.count().label("articles_read"),
        )
        .where(UserArticleInteraction.is_read.is_(True))
        .group_by(UserArticleInteraction.user_id)
        .subquery()
    )
    quizzes = (
        select(
            QuizAttempt.user_id,
            func.count().label("quizzes_taken"),
            func.avg(QuizAttempt.score).label("avg_quiz_score"),
        )
        .group_by(QuizAttempt.user_id)
        .subquery()
    )
    return (
        select(
            Profile.id,
            Profile.username,
            Profile.avatar_url,
            func.coalesce(LeaderboardPoints.points, 0).label("points"),
            func.coalesce(LeaderboardPoints.weekly_points, 0).label("weekly_points"),
            func.coalesce(LeaderboardPoints.monthly_points, 0).label("monthly_points"),
            func.coalesce(ReadingStreak.current_streak, 0).label("current_streak"),
            func.coalesce(ReadingStreak.longest_streak, 0).label("longest_streak"),
            func.coalesce(reads.c.articles_read, 0).label("articles_read"),
            func.coalesce(quizzes.c.quizzes_taken, 0).label("quizzes_taken"),
            quizzes.c.avg_quiz_score,
        )
        .select_from(Profile)
        .outerjoin(LeaderboardPoints, LeaderboardPoints.user_id == Profile.id)
        .outerjoin(ReadingStreak, ReadingStreak.user_id == Profile.id)
        .outerjoin(reads, reads.c.user_id == Profile.id)
        .outerjoin(quizzes, quizzes.c.user_id == Profile.id)
    )


def _row_to_dict(row: Any) -> dict[str, Any]:  # noqa: ANN401
    entry = dict(row._mapping)
    if entry["avg_quiz_score"] is not None:
        entry["avg_quiz_score"] = round(float(entry["avg_quiz_score"]), 1)
    return entry


async def fetch_leaderboard(db: AsyncSession, limit: int = 10) -> list[dict[str, Any]]:
    """Top users by all-time points."""
    stmt = (
        _leaderboard_query()
        .order_by(func.coalesce(LeaderboardPoints.points, 0).desc(), Profile.created_at)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    logger.debug("Fetched %d leaderboard entries", len(rows))
    return [_row_to_dict(r) for r in rows]


async def fetch_weekly_leaderboard(db: AsyncSession, limit: int = 10) -> list[dict[str, Any]]:
    """Top users by points earned in the current weekly window."""
    stmt = (
        _leaderboard_query()
        .order_by(func.coalesce(LeaderboardPoints.weekly_points, 0).desc(), Profile.created_at)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return [_row_to_dict(r) for r in rows]


async def fetch_user_stats(db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any] | None:
    """Leaderboard row for a single user, or None if the profile does not exist."""
    row = (await db.execute(_leaderboard_query().where(Profile.id == user_id))).first()
    return _row_to_dict(row) if row is not None else None


async def fetch_user_leaderboard_position(db: AsyncSession, user_id: uuid.UUID) -> int:
    """1-based rank by all-time points among users with a ledger row. 0 when absent.

    Users tied on points share the best rank.
    """
    ledger = await get_leaderboard_points(db, user_id)
    if ledger is None:
        return 0

    ahead = (
        await db.execute(
            select(func.count())
            .select_from(LeaderboardPoints)
            .where(LeaderboardPoints.points > ledger.points)
        )
    ).scalar_one()
    return ahead + 1
