"""Achievement trigger engine: reacts to reads, saves and quiz submissions."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import Profile, Quiz, QuizAttempt, UserArticleInteraction
from newsiq.gamification.achievement_service import (
    ARTICLE_COLLECTOR,
    AVID_READER,
    QUIZ_ENTHUSIAST,
    QUIZ_MASTER,
    AchievementAward,
    check_and_award_achievement,
)
from newsiq.gamification.points_service import (
    check_point_thresholds,
    get_leaderboard_points,
    update_leaderboard_points,
)
from newsiq.gamification.streak_service import (
    check_streak_threshold,
    get_reading_streak,
    update_reading_streak,
)

logger = logging.getLogger(__name__)

AVID_READER_ARTICLES = 5
ARTICLE_COLLECTOR_SAVES = 10
QUIZ_MASTER_PERFECT_SCORES = 5
QUIZ_ENTHUSIAST_ATTEMPTS = 10
PERFECT_SCORE = 100


@dataclass
class QuizSubmission:
    """Result of a quiz submission and the bookkeeping that followed it."""

    attempt_id: uuid.UUID
    points_awarded: int
    points_updated: bool = False
    article_marked_read: bool = False
    achievements: list[AchievementAward] = field(default_factory=list)


@dataclass
class BatchResult:
    users_processed: int = 0
    failures: int = 0


def _collect(award: AchievementAward | None, awarded: list[AchievementAward]) -> None:
    if award is not None and award.awarded:
        awarded.append(award)


async def _count(db: AsyncSession, model: Any, *criteria: Any) -> int:  # noqa: ANN401
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def check_reader_achievement(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    include_streak: bool = True,
) -> dict[str, Any]:
    """Check reading and saving thresholds, then advance the reading streak.

    Returns a summary dict, or ``{"error": ...}`` if the counts could not be read.
    """
    awarded: list[AchievementAward] = []
    try:
        articles_read = await _count(
            db, UserArticleInteraction,
            UserArticleInteraction.user_id == user_id,
            UserArticleInteraction.is_read.is_(True),
        )
        articles_saved = await _count(
            db, UserArticleInteraction,
            UserArticleInteraction.user_id == user_id,
            UserArticleInteraction.is_saved.is_(True),
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to check reader achievements for user %s", user_id)
        return {"error": str(exc)}

    if articles_read >= AVID_READER_ARTICLES:
        _collect(await check_and_award_achievement(db, redis, user_id, AVID_READER), awarded)
    if articles_saved >= ARTICLE_COLLECTOR_SAVES:
        _collect(await check_and_award_achievement(db, redis, user_id, ARTICLE_COLLECTOR), awarded)

    streak_updated = False
    if include_streak:
        streak_updated = await update_reading_streak(db, redis, user_id, awarded=awarded)

    return {
        "articles_read": articles_read,
        "articles_saved": articles_saved,
        "awarded": awarded,
        "streak_updated": streak_updated,
    }


async def check_quiz_achievements(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
) -> dict[str, Any]:
    """Check perfect-score and attempt-count thresholds. Both checks run on every call."""
    awarded: list[AchievementAward] = []
    try:
        total_attempts = await _count(db, QuizAttempt, QuizAttempt.user_id == user_id)
        perfect_scores = await _count(
            db, QuizAttempt,
            QuizAttempt.user_id == user_id,
            QuizAttempt.score == PERFECT_SCORE,
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Failed to check quiz achievements for user %s", user_id)
        return {"error": str(exc)}

    logger.debug("User %s has %d attempts, %d perfect", user_id, total_attempts, perfect_scores)

    if perfect_scores >= QUIZ_MASTER_PERFECT_SCORES:
        _collect(await check_and_award_achievement(db, redis, user_id, QUIZ_MASTER), awarded)
    if total_attempts >= QUIZ_ENTHUSIAST_ATTEMPTS:
        _collect(await check_and_award_achievement(db, redis, user_id, QUIZ_ENTHUSIAST), awarded)

    return {
        "total_attempts": total_attempts,
        "perfect_scores": perfect_scores,
        "awarded": awarded,
    }


async def submit_quiz_attempt(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    quiz_id: uuid.UUID,
    score: int,
    answers: list[Any],
) -> QuizSubmission:
    """Record a quiz attempt, then run points, achievement and read bookkeeping.

    Only the attempt insert raises. Each later step runs in order and
    is logged on failure; nothing earlier is rolled back.
    """
    from newsiq.articles.service import mark_article_read

    if not 0 <= score <= PERFECT_SCORE:
        msg = f"Score must be between 0 and {PERFECT_SCORE}, got {score}"
        raise ValueError(msg)

    attempt = QuizAttempt(user_id=user_id, quiz_id=quiz_id, score=score, answers=answers)
    db.add(attempt)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to save quiz attempt for user %s quiz %s", user_id, quiz_id)
        raise

    submission = QuizSubmission(attempt_id=attempt.id, points_awarded=score)

    submission.points_updated = await update_leaderboard_points(
        db, redis, user_id, score, awarded=submission.achievements
    )

    quiz_summary = await check_quiz_achievements(db, redis, user_id)
    submission.achievements.extend(quiz_summary.get("awarded", []))

    try:
        article_id = (
            await db.execute(select(Quiz.article_id).where(Quiz.id == quiz_id))
        ).scalar_one_or_none()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to look up article for quiz %s", quiz_id)
        article_id = None

    if article_id is None:
        logger.warning("No article found for quiz %s; not marking as read", quiz_id)
    else:
        try:
            submission.achievements.extend(await mark_article_read(db, redis, user_id, article_id))
            submission.article_marked_read = True
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Failed to mark article %s read for user %s", article_id, user_id)

    logger.info(
        "Quiz attempt %s submitted by user %s: score=%d, unlocked=%s",
        attempt.id, user_id, score, [a.name for a in submission.achievements],
    )
    return submission


async def reevaluate_user(db: AsyncSession, redis: object | None, user_id: uuid.UUID) -> list[AchievementAward]:
    """Re-run every threshold check for one user without recording new activity."""
    awarded: list[AchievementAward] = []

    reader = await check_reader_achievement(db, redis, user_id, include_streak=False)
    if "error" in reader:
        raise RuntimeError(reader["error"])
    awarded.extend(reader["awarded"])

    quiz = await check_quiz_achievements(db, redis, user_id)
    if "error" in quiz:
        raise RuntimeError(quiz["error"])
    awarded.extend(quiz["awarded"])

    streak = await get_reading_streak(db, user_id)
    if streak is not None:
        _collect(await check_streak_threshold(db, redis, user_id, streak.current_streak), awarded)

    points = await get_leaderboard_points(db, user_id)
    if points is not None:
        _collect(await check_point_thresholds(db, redis, user_id, points.points), awarded)

    return awarded


async def update_achievements_for_existing_users(db: AsyncSession, redis: object | None) -> BatchResult:
    """Re-evaluate achievements for every user, one at a time.

    A failure for one user is logged and the loop moves on.
    """
    user_ids = (await db.execute(select(Profile.id).order_by(Profile.created_at))).scalars().all()
    batch = BatchResult()

    for user_id in user_ids:
        try:
            awarded = await reevaluate_user(db, redis, user_id)
            if awarded:
                logger.info("Backfilled achievements for user %s: %s", user_id, [a.name for a in awarded])
        except Exception:
            await db.rollback()
            logger.exception("Failed to re-evaluate achievements for user %s", user_id)
            batch.failures += 1
        batch.users_processed += 1

    logger.info(
        "Achievement re-evaluation complete: %d users, %d failures",
        batch.users_processed, batch.failures,
    )
    return batch
