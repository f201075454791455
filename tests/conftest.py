"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database built from the ORM
metadata with the achievement catalog seeded. Redis is left uninitialised,
so rate limiting and pub/sub are no-ops unless a test supplies a mock.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

os.environ["NEWSIQ_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["NEWSIQ_REDIS_URL"] = ""
os.environ["NEWSIQ_LOG_FORMAT"] = "console"
os.environ["NEWSIQ_CHAT_WEBHOOK_URL"] = "http://workflow.test/webhook/chat"
os.environ["NEWSIQ_LOGIN_WEBHOOK_URL"] = "http://workflow.test/webhook/login"

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.auth.service import get_or_create_profile
from newsiq.config import get_settings
from newsiq.database import close_db, get_engine, get_session, init_db
from newsiq.db.base import Base
from newsiq.db.models import Article, Profile, Quiz
from newsiq.gamification.seed import seed_achievements

get_settings.cache_clear()


def make_token(
    user_id: uuid.UUID,
    email: str | None = "reader@example.com",
    expires_in: timedelta = timedelta(hours=1),
    **claims: Any,  # noqa: ANN401
) -> str:
    """Sign a token the way the hosted auth provider does."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "aud": settings.auth_jwt_audience,
        "role": "authenticated",
        "email": email,
        "iat": now,
        "exp": now + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a fresh, seeded database."""
    settings = get_settings()
    await init_db(settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async for session in get_session():
        await seed_achievements(session)
        yield session
        break

    await close_db()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, sharing the test database."""
    from newsiq.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> Profile:
    """A signed-up reader."""
    return await get_or_create_profile(
        db_session,
        uuid.uuid4(),
        {"email": "reader@example.com", "user_metadata": {"username": "reader"}},
    )


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> Profile:
    return await get_or_create_profile(
        db_session,
        uuid.uuid4(),
        {"email": "other@example.com", "user_metadata": {"username": "other"}},
    )


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user: Profile) -> AsyncClient:
    """Client carrying a bearer token for ``user``."""
    client.headers["Authorization"] = f"Bearer {make_token(user.id)}"
    return client


async def create_article(db: AsyncSession, **overrides: Any) -> Article:  # noqa: ANN401
    """Insert an article with sensible defaults."""
    values: dict[str, Any] = {
        "title": "Central banks hold rates steady",
        "summary": "Policy makers paused after a year of increases.",
        "content": "Full article text.",
        "source": {"name": "Wire"},
        "author": "Staff",
        "category": "business",
        "difficulty_level": "beginner",
        "read_time": 4,
        "tags": ["economy", "rates"],
        "views_count": 0,
        "published_at": datetime.now(timezone.utc),
    }
    values.update(overrides)
    article = Article(**values)
    db.add(article)
    await db.commit()
    return article


async def create_articles(db: AsyncSession, count: int, **overrides: Any) -> list[Article]:  # noqa: ANN401
    return [
        await create_article(db, title=f"Article {i}", **overrides)
        for i in range(count)
    ]


async def create_quiz(db: AsyncSession, article: Article) -> Quiz:
    quiz = Quiz(article_id=article.id, title=f"Quiz for {article.title}")
    db.add(quiz)
    await db.commit()
    return quiz


@pytest_asyncio.fixture
async def article(db_session: AsyncSession) -> Article:
    return await create_article(db_session)


@pytest_asyncio.fixture
async def quiz(db_session: AsyncSession, article: Article) -> Quiz:
    return await create_quiz(db_session, article)


@pytest.fixture
def mock_redis() -> MagicMock:
    """Stand-in Redis client that records publishes."""
    redis = MagicMock()
    redis.publish = AsyncMock(return_value=1)
    return redis


def published(mock_redis: MagicMock, channel: str) -> list[dict]:
    """Payloads published on ``channel``."""
    import json

    return [
        json.loads(call.args[1])
        for call in mock_redis.publish.await_args_list
        if call.args[0] == channel
    ]
