"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from newsiq.gamification.achievement_service import AchievementAward


# --- Achievements ---


class UnlockedAchievement(BaseModel):
    """Payload for the "Achievement Unlocked" toast."""

    name: str
    description: str


def unlocked(awards: list[AchievementAward]) -> list[UnlockedAchievement]:
    return [
        UnlockedAchievement(name=a.name, description=a.description)
        for a in awards
        if a.awarded
    ]


class AchievementResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    criteria: str
    icon_url: str


class AllAchievementsResponse(BaseModel):
    achievements: list[AchievementResponse]


class EarnedAchievementResponse(BaseModel):
    achievement: AchievementResponse
    earned_at: datetime


class UserAchievementsResponse(BaseModel):
    earned: list[EarnedAchievementResponse]
    total_available: int
    total_earned: int


# --- Leaderboard ---


class LeaderboardEntry(BaseModel):
    rank: int
    id: uuid.UUID
    username: str | None = None
    avatar_url: str | None = None
    points: int = 0
    weekly_points: int = 0
    monthly_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    articles_read: int = 0
    quizzes_taken: int = 0
    avg_quiz_score: float | None = None


class LeaderboardResponse(BaseModel):
    period: str
    entries: list[LeaderboardEntry]


class LeaderboardPositionResponse(BaseModel):
    position: int


# --- Streak / points ---


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    last_read_date: date | None = None


class PointsResponse(BaseModel):
    points: int
    weekly_points: int
    monthly_points: int
    last_updated: datetime | None = None
