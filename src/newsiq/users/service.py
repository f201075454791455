"""Profile and preference business logic."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import select

from newsiq.db.models import Profile, UserPreferences
from newsiq.gamification.leaderboard_service import fetch_user_stats

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")
NOTIFICATION_TIMES = ("morning", "afternoon", "evening", "none")


async def fetch_user_profile(db: AsyncSession, profile: Profile) -> dict[str, Any]:
    """Profile fields merged with the user's leaderboard stats.

    Users without any recorded activity get zeroed stats.
    """
    stats = await fetch_user_stats(db, profile.id) or {}
    return {
        "id": profile.id,
        "username": profile.username,
        "full_name": profile.full_name,
        "avatar_url": profile.avatar_url,
        "email": profile.email,
        "created_at": profile.created_at,
        "points": stats.get("points", 0),
        "weekly_points": stats.get("weekly_points", 0),
        "monthly_points": stats.get("monthly_points", 0),
        "current_streak": stats.get("current_streak", 0),
        "longest_streak": stats.get("longest_streak", 0),
        "articles_read": stats.get("articles_read", 0),
        "quizzes_taken": stats.get("quizzes_taken", 0),
        "avg_quiz_score": stats.get("avg_quiz_score"),
    }


async def update_user_profile(
    db: AsyncSession,
    profile: Profile,
    username: str | None = None,
    full_name: str | None = None,
    avatar_url: str | None = None,
) -> Profile:
    """
    Update profile fields. Only the provided fields change.

    Raises:
        ValueError: If the username is already taken (case-insensitive).
    """
    if username is not None:
        result = await db.execute(
            select(Profile.id)
            .where(Profile.username.ilike(username))
            .where(Profile.id != profile.id)
        )
        if result.scalar_one_or_none() is not None:
            msg = "Username already taken"
            raise ValueError(msg)
        profile.username = username

    if full_name is not None:
        profile.full_name = full_name
    if avatar_url is not None:
        profile.avatar_url = avatar_url

    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_updated", user_id=str(profile.id))
    return profile


def default_preferences(user_id: uuid.UUID) -> UserPreferences:
    """Unsaved preferences for a user who skipped onboarding."""
    return UserPreferences(
        user_id=user_id,
        categories=[],
        difficulty_level=None,
        content_format=None,
        notification_times=[],
    )


async def fetch_user_preferences(db: AsyncSession, user_id: uuid.UUID) -> UserPreferences:
    """Stored preferences, or unsaved defaults when none exist yet."""
    result = await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    preferences = result.scalar_one_or_none()
    if preferences is None:
        logger.debug("preferences_not_found", user_id=str(user_id))
        return default_preferences(user_id)
    return preferences


async def update_user_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    categories: list[str] | None = None,
    difficulty_level: str | None = None,
    content_format: str | None = None,
    notification_times: list[str] | None = None,
) -> UserPreferences:
    """
    Update preferences, creating the row on first save.

    Raises:
        ValueError: On an unknown difficulty level or notification time.
    """
    if difficulty_level is not None and difficulty_level not in DIFFICULTY_LEVELS:
        msg = f"Unknown difficulty level: {difficulty_level}"
        raise ValueError(msg)
    if notification_times is not None:
        unknown = [t for t in notification_times if t not in NOTIFICATION_TIMES]
        if unknown:
            msg = f"Unknown notification time: {unknown[0]}"
            raise ValueError(msg)

    result = await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    preferences = result.scalar_one_or_none()
    if preferences is None:
        preferences = default_preferences(user_id)
        db.add(preferences)

    if categories is not None:
        # Deduplicate, keep order
        preferences.categories = list(dict.fromkeys(categories))
    if difficulty_level is not None:
        preferences.difficulty_level = difficulty_level
    if content_format is not None:
        preferences.content_format = content_format
    if notification_times is not None:
        preferences.notification_times = list(notification_times)

    preferences.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return preferences
