"""Achievement catalog, personal progress and leaderboards over HTTP."""

from __future__ import annotations

import pytest

from newsiq.db.models import LeaderboardPoints, ReadingStreak
from newsiq.gamification.achievement_service import check_and_award_achievement
from newsiq.gamification.seed import ACHIEVEMENT_SEED_DATA


class TestAchievements:
    @pytest.mark.asyncio
    async def test_catalog(self, client):
        body = (await client.get("/api/v1/achievements")).json()
        assert len(body["achievements"]) == len(ACHIEVEMENT_SEED_DATA)
        assert {"Avid Reader", "Streak Hunter", "Point Master"} <= {a["name"] for a in body["achievements"]}

    @pytest.mark.asyncio
    async def test_my_achievements(self, authed_client, db_session, user):
        await check_and_award_achievement(db_session, None, user.id, "Streak Hunter")

        body = (await authed_client.get("/api/v1/users/me/achievements")).json()
        assert body["total_earned"] == 1
        assert body["total_available"] == len(ACHIEVEMENT_SEED_DATA)
        assert body["earned"][0]["achievement"]["name"] == "Streak Hunter"


class TestProgress:
    @pytest.mark.asyncio
    async def test_zeros_without_activity(self, authed_client):
        streak = (await authed_client.get("/api/v1/users/me/streak")).json()
        points = (await authed_client.get("/api/v1/users/me/points")).json()
        position = (await authed_client.get("/api/v1/users/me/leaderboard-position")).json()

        assert (streak["current_streak"], streak["longest_streak"]) == (0, 0)
        assert points["points"] == 0
        assert position == {"position": 0}

    @pytest.mark.asyncio
    async def test_reports_stored_values(self, authed_client, db_session, user, other_user):
        db_session.add(ReadingStreak(user_id=user.id, current_streak=4, longest_streak=9))
        db_session.add(LeaderboardPoints(user_id=user.id, points=320, weekly_points=40, monthly_points=120))
        db_session.add(LeaderboardPoints(user_id=other_user.id, points=900, weekly_points=0, monthly_points=0))
        await db_session.commit()

        streak = (await authed_client.get("/api/v1/users/me/streak")).json()
        points = (await authed_client.get("/api/v1/users/me/points")).json()
        position = (await authed_client.get("/api/v1/users/me/leaderboard-position")).json()

        assert (streak["current_streak"], streak["longest_streak"]) == (4, 9)
        assert (points["points"], points["weekly_points"], points["monthly_points"]) == (320, 40, 120)
        assert position == {"position": 2}


class TestLeaderboards:
    @pytest.mark.asyncio
    async def test_alltime(self, client, db_session, user, other_user):
        db_session.add(LeaderboardPoints(user_id=user.id, points=10, weekly_points=10, monthly_points=10))
        db_session.add(LeaderboardPoints(user_id=other_user.id, points=70, weekly_points=5, monthly_points=5))
        await db_session.commit()

        body = (await client.get("/api/v1/leaderboard")).json()
        assert body["period"] == "alltime"
        assert [(e["rank"], e["username"]) for e in body["entries"]] == [(1, "other"), (2, "reader")]

    @pytest.mark.asyncio
    async def test_weekly(self, client, db_session, user, other_user):
        db_session.add(LeaderboardPoints(user_id=user.id, points=10, weekly_points=10, monthly_points=10))
        db_session.add(LeaderboardPoints(user_id=other_user.id, points=70, weekly_points=5, monthly_points=5))
        await db_session.commit()

        body = (await client.get("/api/v1/leaderboard/weekly", params={"limit": 1})).json()
        assert body["period"] == "weekly"
        assert [e["username"] for e in body["entries"]] == ["reader"]
