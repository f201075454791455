"""Article feed and interaction endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from newsiq.db.models import UserPreferences
from tests.conftest import create_article, create_articles


class TestPublicFeed:
    @pytest.mark.asyncio
    async def test_list_articles(self, client, db_session):
        await create_articles(db_session, 3)
        body = (await client.get("/api/v1/articles")).json()
        assert body["count"] == 3
        assert body["articles"][0]["title"] == "Article 2"

    @pytest.mark.asyncio
    async def test_filters_and_search(self, client, db_session):
        await create_article(db_session, title="Chip shortage eases", category="technology")
        await create_article(db_session, title="Cup final tonight", category="sports")

        body = (await client.get("/api/v1/articles", params={"category": "technology"})).json()
        assert [a["title"] for a in body["articles"]] == ["Chip shortage eases"]

        body = (await client.get("/api/v1/articles", params={"search": "cup"})).json()
        assert [a["title"] for a in body["articles"]] == ["Cup final tonight"]

    @pytest.mark.asyncio
    async def test_sort_oldest(self, client, db_session):
        now = datetime.now(timezone.utc)
        await create_article(db_session, title="Later", published_at=now)
        await create_article(db_session, title="Earlier", published_at=now - timedelta(hours=5))

        body = (await client.get("/api/v1/articles", params={"sort_by": "oldest"})).json()
        assert [a["title"] for a in body["articles"]] == ["Earlier", "Later"]

    @pytest.mark.asyncio
    async def test_invalid_sort_rejected(self, client):
        assert (await client.get("/api/v1/articles", params={"sort_by": "random"})).status_code == 422

    @pytest.mark.asyncio
    async def test_trending(self, client, db_session):
        await create_article(db_session, title="Quiet", views_count=2)
        await create_article(db_session, title="Viral", views_count=5000)
        body = (await client.get("/api/v1/articles/trending", params={"limit": 1})).json()
        assert [a["title"] for a in body["articles"]] == ["Viral"]

    @pytest.mark.asyncio
    async def test_get_article(self, client, article):
        body = (await client.get(f"/api/v1/articles/{article.id}")).json()
        assert body["id"] == str(article.id)
        assert body["tags"] == ["economy", "rates"]
        assert body["source"] == {"name": "Wire"}

    @pytest.mark.asyncio
    async def test_missing_article(self, client):
        assert (await client.get(f"/api/v1/articles/{uuid.uuid4()}")).status_code == 404


class TestInteractions:
    @pytest.mark.asyncio
    async def test_requires_auth(self, client, article):
        response = await client.put(f"/api/v1/articles/{article.id}/interaction", json={"is_read": True})
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_save_progress(self, authed_client, article):
        response = await authed_client.put(
            f"/api/v1/articles/{article.id}/interaction",
            json={"read_progress": 40, "read_time": 90},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["interaction"]["read_progress"] == 40
        assert body["interaction"]["is_read"] is False
        assert body["achievements"] == []

        fetched = (await authed_client.get(f"/api/v1/articles/{article.id}/interaction")).json()
        assert fetched["read_time"] == 90

    @pytest.mark.asyncio
    async def test_no_interaction_yet(self, authed_client, article):
        assert (await authed_client.get(f"/api/v1/articles/{article.id}/interaction")).status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_article(self, authed_client):
        response = await authed_client.put(f"/api/v1/articles/{uuid.uuid4()}/interaction", json={"is_read": True})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_progress_out_of_range(self, authed_client, article):
        response = await authed_client.put(
            f"/api/v1/articles/{article.id}/interaction", json={"read_progress": 150},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_fifth_read_reports_unlock(self, authed_client, db_session):
        articles = await create_articles(db_session, 5)
        for a in articles[:4]:
            await authed_client.put(f"/api/v1/articles/{a.id}/interaction", json={"is_read": True})

        response = await authed_client.put(
            f"/api/v1/articles/{articles[4].id}/interaction", json={"is_read": True, "read_progress": 100},
        )
        assert response.json()["achievements"] == [{"name": "Avid Reader", "description": "Read 5 articles"}]

        streak = (await authed_client.get("/api/v1/users/me/streak")).json()
        assert streak["current_streak"] == 1

    @pytest.mark.asyncio
    async def test_saved_and_read_lists(self, authed_client, db_session):
        saved, read = await create_articles(db_session, 2)
        await authed_client.put(f"/api/v1/articles/{saved.id}/interaction", json={"is_saved": True})
        await authed_client.put(f"/api/v1/articles/{read.id}/interaction", json={"is_read": True})

        saved_body = (await authed_client.get("/api/v1/users/me/articles/saved")).json()
        read_body = (await authed_client.get("/api/v1/users/me/articles/read")).json()
        assert [a["id"] for a in saved_body["articles"]] == [str(saved.id)]
        assert [a["id"] for a in read_body["articles"]] == [str(read.id)]


class TestPersonalFeed:
    @pytest.mark.asyncio
    async def test_feed_follows_preferences(self, authed_client, db_session, user):
        db_session.add(UserPreferences(user_id=user.id, categories=["science"]))
        await db_session.commit()
        await create_article(db_session, title="Comet sighted", category="science")
        await create_article(db_session, title="Match report", category="sports")

        body = (await authed_client.get("/api/v1/users/me/feed")).json()
        assert [a["title"] for a in body["articles"]] == ["Comet sighted"]
