"""Article feed queries and per-user article interactions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from sqlalchemy import String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.dialect import upsert_insert
from newsiq.db.models import Article, UserArticleInteraction, UserPreferences
from newsiq.gamification.achievement_service import AchievementAward
from newsiq.gamification.trigger_engine import check_reader_achievement

logger = structlog.get_logger()

SORT_ORDERS = {
    "newest": Article.published_at.desc(),
    "oldest": Article.published_at.asc(),
    "most-read": Article.views_count.desc(),
}


async def fetch_articles(
    db: AsyncSession,
    limit: int = 200,
    offset: int = 0,
    category: str | None = None,
    difficulty_level: str | None = None,
    search: str = "",
    sort_by: str = "newest",
) -> list[Article]:
    """Article feed with optional category/difficulty filters and free-text search.

    Search matches title or summary case-insensitively, or an exact tag.
    Unknown sort keys fall back to newest first.
    """
    stmt = select(Article).order_by(SORT_ORDERS.get(sort_by, SORT_ORDERS["newest"]))

    if category:
        stmt = stmt.where(Article.category == category)
    if difficulty_level:
        stmt = stmt.where(Article.difficulty_level == difficulty_level)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Article.title.ilike(pattern),
            Article.summary.ilike(pattern),
            cast(Article.tags, String).contains(f'"{search}"'),
        ))
    if offset > 0:
        stmt = stmt.offset(offset)
    if limit > 0:
        stmt = stmt.limit(limit)

    result = await db.execute(stmt)
    articles = list(result.scalars().all())
    logger.debug("articles_fetched", count=len(articles), category=category, sort_by=sort_by)
    return articles


async def fetch_article_by_id(db: AsyncSession, article_id: uuid.UUID) -> Article | None:
    return await db.get(Article, article_id)


async def fetch_trending_articles(db: AsyncSession, limit: int = 5) -> list[Article]:
    """Most-viewed articles."""
    result = await db.execute(
        select(Article).order_by(Article.views_count.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def fetch_articles_by_user_preference(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 100,
) -> list[Article]:
    """Newest articles in the user's preferred categories.

    Users without preferences (or with no categories chosen) get the default feed.
    """
    result = await db.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    preferences = result.scalar_one_or_none()

    if preferences is None or not preferences.categories:
        logger.info("no_preferences_default_feed", user_id=str(user_id))
        return await fetch_articles(db, limit=limit)

    result = await db.execute(
        select(Article)
        .where(Article.category.in_(preferences.categories))
        .order_by(Article.published_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------


async def get_user_article_interaction(
    db: AsyncSession,
    user_id: uuid.UUID,
    article_id: uuid.UUID,
) -> UserArticleInteraction | None:
    result = await db.execute(
        select(UserArticleInteraction)
        .where(
            UserArticleInteraction.user_id == user_id,
            UserArticleInteraction.article_id == article_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def save_article_interaction(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    article_id: uuid.UUID,
    is_read: bool = False,
    is_saved: bool = False,
    read_progress: int = 0,
    read_time: int = 0,
) -> list[AchievementAward]:
    """Upsert the (user, article) interaction, then run reader bookkeeping.

    Reads and saves trigger the reader achievement check; only reads count
    toward the streak. Storage errors on the upsert propagate. Returns the
    achievements newly unlocked by this interaction.
    """
    now = datetime.now(timezone.utc)
    values = {
        "is_read": is_read,
        "is_saved": is_saved,
        "read_progress": read_progress,
        "read_time": read_time,
        "interacted_at": now,
    }
    stmt = upsert_insert(db, UserArticleInteraction).values(
        id=uuid.uuid4(),
        user_id=user_id,
        article_id=article_id,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "article_id"],
        set_=values,
    )
    await db.execute(stmt)
    await db.commit()
    logger.info(
        "article_interaction_saved",
        user_id=str(user_id), article_id=str(article_id), is_read=is_read, is_saved=is_saved,
    )

    if not (is_read or is_saved):
        return []

    summary = await check_reader_achievement(db, redis, user_id, include_streak=is_read)
    return summary.get("awarded", [])


async def mark_article_read(
    db: AsyncSession,
    redis: object | None,
    user_id: uuid.UUID,
    article_id: uuid.UUID,
) -> list[AchievementAward]:
    """Mark an article fully read, keeping the saved flag and read time as they were."""
    existing = await get_user_article_interaction(db, user_id, article_id)
    return await save_article_interaction(
        db,
        redis,
        user_id,
        article_id,
        is_read=True,
        is_saved=existing.is_saved if existing else False,
        read_progress=100,
        read_time=existing.read_time if existing else 0,
    )


async def get_saved_articles(db: AsyncSession, user_id: uuid.UUID) -> list[Article]:
    result = await db.execute(
        select(Article)
        .join(UserArticleInteraction, UserArticleInteraction.article_id == Article.id)
        .where(
            UserArticleInteraction.user_id == user_id,
            UserArticleInteraction.is_saved.is_(True),
        )
        .order_by(UserArticleInteraction.interacted_at.desc())
    )
    return list(result.scalars().all())


async def get_read_articles(db: AsyncSession, user_id: uuid.UUID) -> list[Article]:
    """Articles the user has read, most recent interaction first."""
    result = await db.execute(
        select(Article)
        .join(UserArticleInteraction, UserArticleInteraction.article_id == Article.id)
        .where(
            UserArticleInteraction.user_id == user_id,
            UserArticleInteraction.is_read.is_(True),
        )
        .order_by(UserArticleInteraction.interacted_at.desc())
    )
    return list(result.scalars().all())
