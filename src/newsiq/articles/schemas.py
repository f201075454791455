"""Pydantic request/response models for article endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from newsiq.gamification.schemas import UnlockedAchievement


class ArticleResponse(BaseModel):
    id: uuid.UUID
    title: str
    summary: str
    content: str
    source: dict[str, Any] = {}
    published_at: datetime | None = None
    author: str
    category: str
    image_url: str | None = None
    difficulty_level: str
    read_time: int
    tags: list[str] = []
    views_count: int = 0


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    count: int


class InteractionRequest(BaseModel):
    is_read: bool = False
    is_saved: bool = False
    read_progress: int = Field(0, ge=0, le=100)
    read_time: int = Field(0, ge=0)


class InteractionResponse(BaseModel):
    article_id: uuid.UUID
    is_read: bool
    is_saved: bool
    read_progress: int
    read_time: int
    interacted_at: datetime | None = None


class InteractionSavedResponse(BaseModel):
    interaction: InteractionResponse
    achievements: list[UnlockedAchievement] = []
