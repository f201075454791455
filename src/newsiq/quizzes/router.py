"""Quiz endpoints: lookup, ingestion and submission."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.articles.service import fetch_article_by_id
from newsiq.auth.dependencies import get_current_user
from newsiq.database import get_session
from newsiq.db.models import Profile
from newsiq.gamification.schemas import unlocked
from newsiq.gamification.trigger_engine import submit_quiz_attempt
from newsiq.quizzes.schemas import (
    QuizAttemptRequest,
    QuizAttemptResponse,
    QuizQuestionModel,
    QuizResponse,
    QuizUpsertRequest,
    QuizUpsertResponse,
)
from newsiq.quizzes.service import create_or_update_quiz, fetch_quiz_by_article_id, get_quiz
from newsiq.redis_client import get_redis_or_none

router = APIRouter(prefix="/api/v1", tags=["Quizzes"])


@router.get("/articles/{article_id}/quiz", response_model=QuizResponse)
async def get_article_quiz(article_id: uuid.UUID, db: AsyncSession = Depends(get_session)):
    """Quiz for an article, questions in order."""
    found = await fetch_quiz_by_article_id(db, article_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Quiz not found")

    quiz, questions = found
    return QuizResponse(
        id=quiz.id,
        article_id=quiz.article_id,
        title=quiz.title,
        questions=[
            QuizQuestionModel(
                question_number=q.question_number,
                question_text=q.question_text,
                options=q.options,
                correct_answer=q.correct_answer,
                explanation=q.explanation,
            )
            for q in questions
        ],
    )


@router.put("/articles/{article_id}/quiz", response_model=QuizUpsertResponse)
async def put_article_quiz(
    article_id: uuid.UUID,
    body: QuizUpsertRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Store a generated quiz, replacing any existing questions."""
    if await fetch_article_by_id(db, article_id) is None:
        raise HTTPException(status_code=404, detail="Article not found")

    quiz_id = await create_or_update_quiz(
        db,
        article_id,
        [q.model_dump() for q in body.questions],
        title=body.title,
    )
    return QuizUpsertResponse(quiz_id=quiz_id, question_count=len(body.questions))


@router.post("/quizzes/{quiz_id}/attempts", response_model=QuizAttemptResponse, status_code=201)
async def post_quiz_attempt(
    quiz_id: uuid.UUID,
    body: QuizAttemptRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_or_none),
):
    """Record a scored attempt. Points, achievements and read state follow from it."""
    if await get_quiz(db, quiz_id) is None:
        raise HTTPException(status_code=404, detail="Quiz not found")

    try:
        submission = await submit_quiz_attempt(db, redis, user.id, quiz_id, body.score, body.answers)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    return QuizAttemptResponse(
        attempt_id=submission.attempt_id,
        points_awarded=submission.points_awarded,
        points_updated=submission.points_updated,
        article_marked_read=submission.article_marked_read,
        achievements=unlocked(submission.achievements),
    )
