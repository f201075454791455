"""Article feed queries and interaction upserts."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from newsiq.articles.service import (
    fetch_article_by_id,
    fetch_articles,
    fetch_articles_by_user_preference,
    fetch_trending_articles,
    get_read_articles,
    get_saved_articles,
    get_user_article_interaction,
    mark_article_read,
    save_article_interaction,
)
from newsiq.db.models import UserPreferences
from newsiq.gamification.achievement_service import AVID_READER
from newsiq.gamification.streak_service import get_reading_streak
from tests.conftest import create_article, create_articles

NOW = datetime(2026, 6, 1, 12, tzinfo=timezone.utc)


class TestFetchArticles:
    @pytest.mark.asyncio
    async def test_newest_first_by_default(self, db_session):
        old = await create_article(db_session, title="Old", published_at=NOW - timedelta(days=2))
        new = await create_article(db_session, title="New", published_at=NOW)
        assert [a.id for a in await fetch_articles(db_session)] == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_oldest_and_most_read(self, db_session):
        old = await create_article(db_session, title="Old", published_at=NOW - timedelta(days=2), views_count=50)
        new = await create_article(db_session, title="New", published_at=NOW, views_count=5)
        assert [a.id for a in await fetch_articles(db_session, sort_by="oldest")] == [old.id, new.id]
        assert [a.id for a in await fetch_articles(db_session, sort_by="most-read")] == [old.id, new.id]

    @pytest.mark.asyncio
    async def test_unknown_sort_falls_back_to_newest(self, db_session):
        old = await create_article(db_session, title="Old", published_at=NOW - timedelta(days=2))
        new = await create_article(db_session, title="New", published_at=NOW)
        assert [a.id for a in await fetch_articles(db_session, sort_by="random")] == [new.id, old.id]

    @pytest.mark.asyncio
    async def test_category_and_difficulty_filters(self, db_session):
        await create_article(db_session, category="sports", difficulty_level="beginner")
        tech = await create_article(db_session, category="technology", difficulty_level="advanced")
        await create_article(db_session, category="technology", difficulty_level="beginner")

        result = await fetch_articles(db_session, category="technology", difficulty_level="advanced")
        assert [a.id for a in result] == [tech.id]

    @pytest.mark.asyncio
    async def test_search_title_summary_and_tag(self, db_session):
        by_title = await create_article(db_session, title="Quantum chips arrive", tags=[])
        by_summary = await create_article(db_session, title="Other", summary="A QUANTUM leap", tags=[])
        by_tag = await create_article(db_session, title="Tagged", summary="", tags=["quantum"])
        await create_article(db_session, title="Unrelated", summary="Nothing here", tags=["sports"])

        found = {a.id for a in await fetch_articles(db_session, search="quantum")}
        assert found == {by_title.id, by_summary.id, by_tag.id}

    @pytest.mark.asyncio
    async def test_limit_and_offset(self, db_session):
        articles = await create_articles(db_session, 5)
        page = await fetch_articles(db_session, limit=2, offset=1, sort_by="oldest")
        assert [a.id for a in page] == [articles[1].id, articles[2].id]

    @pytest.mark.asyncio
    async def test_fetch_by_id(self, db_session, article):
        assert (await fetch_article_by_id(db_session, article.id)).title == article.title

    @pytest.mark.asyncio
    async def test_trending_by_views(self, db_session):
        quiet = await create_article(db_session, views_count=1)
        hot = await create_article(db_session, views_count=900)
        trending = await fetch_trending_articles(db_session, limit=1)
        assert [a.id for a in trending] == [hot.id]
        assert quiet.id not in [a.id for a in trending]


class TestPreferenceFeed:
    @pytest.mark.asyncio
    async def test_without_preferences_returns_default_feed(self, db_session, user):
        articles = await create_articles(db_session, 3)
        feed = await fetch_articles_by_user_preference(db_session, user.id)
        assert {a.id for a in feed} == {a.id for a in articles}

    @pytest.mark.asyncio
    async def test_filters_to_preferred_categories(self, db_session, user):
        db_session.add(UserPreferences(user_id=user.id, categories=["science"]))
        await db_session.commit()
        science = await create_article(db_session, category="science")
        await create_article(db_session, category="sports")

        feed = await fetch_articles_by_user_preference(db_session, user.id)
        assert [a.id for a in feed] == [science.id]

    @pytest.mark.asyncio
    async def test_empty_categories_returns_default_feed(self, db_session, user):
        db_session.add(UserPreferences(user_id=user.id, categories=[]))
        await db_session.commit()
        await create_articles(db_session, 2)
        assert len(await fetch_articles_by_user_preference(db_session, user.id)) == 2


class TestInteractions:
    @pytest.mark.asyncio
    async def test_save_creates_then_updates(self, db_session, user, article):
        await save_article_interaction(db_session, None, user.id, article.id, read_progress=40, read_time=60)
        await save_article_interaction(db_session, None, user.id, article.id, is_read=True, read_progress=100)

        interaction = await get_user_article_interaction(db_session, user.id, article.id)
        assert interaction.is_read is True
        assert interaction.read_progress == 100
        assert interaction.read_time == 0

    @pytest.mark.asyncio
    async def test_no_interaction(self, db_session, user, article):
        assert await get_user_article_interaction(db_session, user.id, article.id) is None

    @pytest.mark.asyncio
    async def test_read_advances_streak(self, db_session, user, article):
        await save_article_interaction(db_session, None, user.id, article.id, is_read=True)
        assert (await get_reading_streak(db_session, user.id)).current_streak == 1

    @pytest.mark.asyncio
    async def test_progress_only_runs_no_bookkeeping(self, db_session, user, article):
        awarded = await save_article_interaction(db_session, None, user.id, article.id, read_progress=10)
        assert awarded == []
        assert await get_reading_streak(db_session, user.id) is None

    @pytest.mark.asyncio
    async def test_fifth_read_returns_unlock(self, db_session, user):
        articles = await create_articles(db_session, 5)
        for a in articles[:4]:
            assert await save_article_interaction(db_session, None, user.id, a.id, is_read=True) == []
        awarded = await save_article_interaction(db_session, None, user.id, articles[4].id, is_read=True)
        assert [a.name for a in awarded] == [AVID_READER]

    @pytest.mark.asyncio
    async def test_mark_read_without_existing_interaction(self, db_session, user, article):
        await mark_article_read(db_session, None, user.id, article.id)
        interaction = await get_user_article_interaction(db_session, user.id, article.id)
        assert (interaction.is_read, interaction.is_saved, interaction.read_progress) == (True, False, 100)


class TestUserLists:
    @pytest.mark.asyncio
    async def test_saved_and_read_lists(self, db_session, user, other_user):
        saved, read, both = await create_articles(db_session, 3)
        await save_article_interaction(db_session, None, user.id, saved.id, is_saved=True)
        await save_article_interaction(db_session, None, user.id, read.id, is_read=True)
        await save_article_interaction(db_session, None, user.id, both.id, is_read=True, is_saved=True)
        await save_article_interaction(db_session, None, other_user.id, saved.id, is_read=True)

        assert {a.id for a in await get_saved_articles(db_session, user.id)} == {saved.id, both.id}
        assert {a.id for a in await get_read_articles(db_session, user.id)} == {read.id, both.id}
        assert [a.id for a in await get_read_articles(db_session, other_user.id)] == [saved.id]
