"""Points ledger: additive updates, lazy row creation and point badges."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from newsiq.gamification.achievement_service import POINT_COLLECTOR, POINT_MASTER, list_user_achievements
from newsiq.gamification.points_service import (
    add_points,
    check_point_thresholds,
    get_leaderboard_points,
    update_leaderboard_points,
)


async def _earned(db, user_id) -> set[str]:
    return {ua.achievement.name for ua in await list_user_achievements(db, user_id)}


class TestAddPoints:
    @pytest.mark.asyncio
    async def test_creates_row_on_first_award(self, db_session, user):
        assert await add_points(db_session, user.id, 80) == 80
        ledger = await get_leaderboard_points(db_session, user.id)
        assert (ledger.points, ledger.weekly_points, ledger.monthly_points) == (80, 80, 80)

    @pytest.mark.asyncio
    async def test_adds_to_all_windows(self, db_session, user):
        await add_points(db_session, user.id, 80)
        assert await add_points(db_session, user.id, 20) == 100
        ledger = await get_leaderboard_points(db_session, user.id)
        assert (ledger.points, ledger.weekly_points, ledger.monthly_points) == (100, 100, 100)

    @pytest.mark.asyncio
    async def test_zero_points_still_creates_row(self, db_session, user):
        assert await add_points(db_session, user.id, 0) == 0
        assert await get_leaderboard_points(db_session, user.id) is not None

    @pytest.mark.asyncio
    async def test_negative_rejected(self, db_session, user):
        with pytest.raises(ValueError, match="non-negative"):
            await add_points(db_session, user.id, -5)


class TestThresholds:
    @pytest.mark.asyncio
    async def test_below_collector(self, db_session, user):
        assert await check_point_thresholds(db_session, None, user.id, 499) is None

    @pytest.mark.asyncio
    async def test_collector_at_500(self, db_session, user):
        award = await check_point_thresholds(db_session, None, user.id, 500)
        assert award.name == POINT_COLLECTOR

    @pytest.mark.asyncio
    async def test_master_takes_priority(self, db_session, user):
        """Jumping straight past 1000 grants Point Master only."""
        award = await check_point_thresholds(db_session, None, user.id, 1000)
        assert award.name == POINT_MASTER
        assert await _earned(db_session, user.id) == {POINT_MASTER}


class TestUpdateLeaderboardPoints:
    @pytest.mark.asyncio
    async def test_returns_true_and_adds(self, db_session, user):
        assert await update_leaderboard_points(db_session, None, user.id, 100) is True
        ledger = await get_leaderboard_points(db_session, user.id)
        assert ledger.points == 100

    @pytest.mark.asyncio
    async def test_threshold_checked_on_first_insert(self, db_session, user):
        awarded = []
        assert await update_leaderboard_points(db_session, None, user.id, 600, awarded=awarded)
        assert [a.name for a in awarded] == [POINT_COLLECTOR]

    @pytest.mark.asyncio
    async def test_crossing_thresholds_over_time(self, db_session, user):
        for _ in range(5):
            await update_leaderboard_points(db_session, None, user.id, 100)
        assert await _earned(db_session, user.id) == {POINT_COLLECTOR}

        for _ in range(5):
            await update_leaderboard_points(db_session, None, user.id, 100)
        assert await _earned(db_session, user.id) == {POINT_COLLECTOR, POINT_MASTER}

    @pytest.mark.asyncio
    async def test_negative_returns_false(self, db_session, user):
        assert await update_leaderboard_points(db_session, None, user.id, -1) is False
        assert await get_leaderboard_points(db_session, user.id) is None

    @pytest.mark.asyncio
    async def test_storage_failure_returns_false(self, db_session, user, monkeypatch):
        monkeypatch.setattr(
            db_session,
            "execute",
            AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("db down"))),
        )
        assert await update_leaderboard_points(db_session, None, user.id, 10) is False
