"""Article feed and interaction endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.articles.schemas import (
    ArticleListResponse,
    ArticleResponse,
    InteractionRequest,
    InteractionResponse,
    InteractionSavedResponse,
)
from newsiq.articles.service import (
    fetch_article_by_id,
    fetch_articles,
    fetch_articles_by_user_preference,
    fetch_trending_articles,
    get_read_articles,
    get_saved_articles,
    get_user_article_interaction,
    save_article_interaction,
)
from newsiq.auth.dependencies import get_current_user
from newsiq.config import get_settings
from newsiq.database import get_session
from newsiq.db.models import Article, Profile, UserArticleInteraction
from newsiq.gamification.schemas import unlocked
from newsiq.redis_client import get_redis_or_none

router = APIRouter(prefix="/api/v1", tags=["Articles"])


def _article_response(article: Article) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        title=article.title,
        summary=article.summary,
        content=article.content,
        source=article.source or {},
        published_at=article.published_at,
        author=article.author,
        category=article.category,
        image_url=article.image_url,
        difficulty_level=article.difficulty_level,
        read_time=article.read_time,
        tags=article.tags or [],
        views_count=article.views_count or 0,
    )


def _article_list(articles: list[Article]) -> ArticleListResponse:
    return ArticleListResponse(
        articles=[_article_response(a) for a in articles],
        count=len(articles),
    )


def _interaction_response(interaction: UserArticleInteraction) -> InteractionResponse:
    return InteractionResponse(
        article_id=interaction.article_id,
        is_read=interaction.is_read,
        is_saved=interaction.is_saved,
        read_progress=interaction.read_progress,
        read_time=interaction.read_time,
        interacted_at=interaction.interacted_at,
    )


# ── Public feed ──


@router.get("/articles", response_model=ArticleListResponse)
async def list_articles(
    limit: int = Query(None, ge=0, le=500),
    offset: int = Query(0, ge=0),
    category: str | None = None,
    difficulty_level: str | None = None,
    search: str = "",
    sort_by: str = Query("newest", pattern="^(newest|oldest|most-read)$"),
    db: AsyncSession = Depends(get_session),
):
    """Article feed with filters, search and sorting."""
    articles = await fetch_articles(
        db,
        limit=get_settings().article_feed_limit if limit is None else limit,
        offset=offset,
        category=category,
        difficulty_level=difficulty_level,
        search=search,
        sort_by=sort_by,
    )
    return _article_list(articles)


@router.get("/articles/trending", response_model=ArticleListResponse)
async def list_trending(
    limit: int = Query(None, ge=1, le=50),
    db: AsyncSession = Depends(get_session),
):
    """Most-viewed articles."""
    articles = await fetch_trending_articles(db, limit or get_settings().trending_limit)
    return _article_list(articles)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    article = await fetch_article_by_id(db, article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return _article_response(article)


# ── Authenticated ──


@router.get("/users/me/feed", response_model=ArticleListResponse)
async def get_my_feed(
    limit: int = Query(100, ge=1, le=500),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Personalised feed from the user's category preferences."""
    return _article_list(await fetch_articles_by_user_preference(db, user.id, limit))


@router.get("/users/me/articles/saved", response_model=ArticleListResponse)
async def list_saved_articles(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return _article_list(await get_saved_articles(db, user.id))


@router.get("/users/me/articles/read", response_model=ArticleListResponse)
async def list_read_articles(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    return _article_list(await get_read_articles(db, user.id))


@router.get("/articles/{article_id}/interaction", response_model=InteractionResponse)
async def get_interaction(
    article_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Current user's read/saved state for an article."""
    interaction = await get_user_article_interaction(db, user.id, article_id)
    if interaction is None:
        raise HTTPException(status_code=404, detail="No interaction recorded")
    return _interaction_response(interaction)


@router.put("/articles/{article_id}/interaction", response_model=InteractionSavedResponse)
async def put_interaction(
    article_id: uuid.UUID,
    body: InteractionRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_or_none),
):
    """Save read progress / saved flag. Returns any achievements this unlocked."""
    if await fetch_article_by_id(db, article_id) is None:
        raise HTTPException(status_code=404, detail="Article not found")

    awarded = await save_article_interaction(
        db,
        redis,
        user.id,
        article_id,
        is_read=body.is_read,
        is_saved=body.is_saved,
        read_progress=body.read_progress,
        read_time=body.read_time,
    )
    interaction = await get_user_article_interaction(db, user.id, article_id)
    return InteractionSavedResponse(
        interaction=_interaction_response(interaction),
        achievements=unlocked(awarded),
    )
