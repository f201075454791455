"""Pydantic request/response models for profile and preference endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: uuid.UUID
    username: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    email: str | None = None
    created_at: datetime | None = None
    points: int = 0
    weekly_points: int = 0
    monthly_points: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    articles_read: int = 0
    quizzes_taken: int = 0
    avg_quiz_score: float | None = None


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    full_name: str | None = Field(None, max_length=128)
    avatar_url: str | None = Field(None, max_length=2048)


class PreferencesResponse(BaseModel):
    categories: list[str] = []
    difficulty_level: str | None = None
    content_format: str | None = None
    notification_times: list[str] = []


class PreferencesUpdateRequest(BaseModel):
    categories: list[str] | None = None
    difficulty_level: str | None = None
    content_format: str | None = None
    notification_times: list[str] | None = None


class LoginEventResponse(BaseModel):
    delivered: bool
