"""Pydantic request/response models for quiz endpoints."""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, Field

from newsiq.gamification.schemas import UnlockedAchievement


class QuizQuestionModel(BaseModel):
    question_number: int = Field(..., ge=1)
    question_text: str
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: str = ""


class QuizResponse(BaseModel):
    id: uuid.UUID
    article_id: uuid.UUID
    title: str
    questions: list[QuizQuestionModel]


class QuizUpsertRequest(BaseModel):
    title: str | None = None
    questions: list[QuizQuestionModel] = Field(..., min_length=1)


class QuizUpsertResponse(BaseModel):
    quiz_id: uuid.UUID
    question_count: int


class QuizAttemptRequest(BaseModel):
    score: int = Field(..., ge=0, le=100)
    answers: list[Any] = []


class QuizAttemptResponse(BaseModel):
    attempt_id: uuid.UUID
    points_awarded: int
    points_updated: bool
    article_marked_read: bool
    achievements: list[UnlockedAchievement] = []
