"""Achievements and leaderboard API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.auth.dependencies import get_current_user
from newsiq.config import get_settings
from newsiq.database import get_session
from newsiq.db.models import Achievement, Profile
from newsiq.gamification.achievement_service import list_achievements, list_user_achievements
from newsiq.gamification.leaderboard_service import (
    fetch_leaderboard,
    fetch_user_leaderboard_position,
    fetch_weekly_leaderboard,
)
from newsiq.gamification.points_service import get_leaderboard_points
from newsiq.gamification.schemas import (
    AchievementResponse,
    AllAchievementsResponse,
    EarnedAchievementResponse,
    LeaderboardEntry,
    LeaderboardPositionResponse,
    LeaderboardResponse,
    PointsResponse,
    StreakResponse,
    UserAchievementsResponse,
)
from newsiq.gamification.streak_service import get_reading_streak

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def _achievement_response(a: Achievement) -> AchievementResponse:
    return AchievementResponse(
        id=a.id,
        name=a.name,
        description=a.description,
        criteria=a.criteria,
        icon_url=a.icon_url,
    )


def _entries(rows: list[dict]) -> list[LeaderboardEntry]:
    return [LeaderboardEntry(rank=i, **row) for i, row in enumerate(rows, start=1)]


# ── Public endpoints ──


@router.get("/achievements", response_model=AllAchievementsResponse)
async def get_all_achievements(db: AsyncSession = Depends(get_session)):
    """Full achievement catalog."""
    achievements = await list_achievements(db)
    return AllAchievementsResponse(achievements=[_achievement_response(a) for a in achievements])


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """All-time leaderboard by points."""
    rows = await fetch_leaderboard(db, limit or get_settings().leaderboard_limit)
    return LeaderboardResponse(period="alltime", entries=_entries(rows))


@router.get("/leaderboard/weekly", response_model=LeaderboardResponse)
async def get_weekly_leaderboard(
    limit: int = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Weekly leaderboard by weekly points."""
    rows = await fetch_weekly_leaderboard(db, limit or get_settings().leaderboard_limit)
    return LeaderboardResponse(period="weekly", entries=_entries(rows))


# ── Authenticated endpoints ──


@router.get("/users/me/achievements", response_model=UserAchievementsResponse)
async def get_my_achievements(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    earned = await list_user_achievements(db, user.id)
    total_available = len(await list_achievements(db))
    return UserAchievementsResponse(
        earned=[
            EarnedAchievementResponse(
                achievement=_achievement_response(ua.achievement),
                earned_at=ua.earned_at,
            )
            for ua in earned
        ],
        total_available=total_available,
        total_earned=len(earned),
    )


@router.get("/users/me/leaderboard-position", response_model=LeaderboardPositionResponse)
async def get_my_position(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """1-based all-time rank, 0 if the user has no points yet."""
    return LeaderboardPositionResponse(position=await fetch_user_leaderboard_position(db, user.id))


@router.get("/users/me/streak", response_model=StreakResponse)
async def get_my_streak(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    streak = await get_reading_streak(db, user.id)
    if streak is None:
        return StreakResponse(current_streak=0, longest_streak=0)
    return StreakResponse(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_read_date=streak.last_read_date,
    )


@router.get("/users/me/points", response_model=PointsResponse)
async def get_my_points(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    ledger = await get_leaderboard_points(db, user.id)
    if ledger is None:
        return PointsResponse(points=0, weekly_points=0, monthly_points=0)
    return PointsResponse(
        points=ledger.points,
        weekly_points=ledger.weekly_points,
        monthly_points=ledger.monthly_points,
        last_updated=ledger.last_updated,
    )
