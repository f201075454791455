"""Quiz lookup and ingestion of generated quizzes."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import Quiz, QuizQuestion

logger = logging.getLogger(__name__)


async def get_quiz(db: AsyncSession, quiz_id: uuid.UUID) -> Quiz | None:
    return await db.get(Quiz, quiz_id)


async def fetch_quiz_by_article_id(
    db: AsyncSession,
    article_id: uuid.UUID,
) -> tuple[Quiz, list[QuizQuestion]] | None:
    """Quiz for an article with its questions in question order, or None."""
    quiz = (
        await db.execute(select(Quiz).where(Quiz.article_id == article_id))
    ).scalar_one_or_none()
    if quiz is None:
        logger.debug("No quiz found for article %s", article_id)
        return None

    result = await db.execute(
        select(QuizQuestion)
        .where(QuizQuestion.quiz_id == quiz.id)
        .order_by(QuizQuestion.question_number)
    )
    return quiz, list(result.scalars().all())


async def create_or_update_quiz(
    db: AsyncSession,
    article_id: uuid.UUID,
    questions: list[dict[str, Any]],
    title: str | None = None,
) -> uuid.UUID:
    """Create the article's quiz, or retitle it and replace its whole question set.

    Runs as one transaction. Returns the quiz id.
    """
    title = title or f"Quiz for article {article_id}"
    try:
        quiz = (
            await db.execute(select(Quiz).where(Quiz.article_id == article_id))
        ).scalar_one_or_none()

        if quiz is None:
            quiz = Quiz(article_id=article_id, title=title)
            db.add(quiz)
            await db.flush()
        else:
            quiz.title = title
            await db.execute(delete(QuizQuestion).where(QuizQuestion.quiz_id == quiz.id))

        for q in questions:
            db.add(QuizQuestion(
                quiz_id=quiz.id,
                article_id=article_id,
                question_number=q["question_number"],
                question_text=q["question_text"],
                options=list(q["options"]),
                correct_answer=q["correct_answer"],
                explanation=q.get("explanation", ""),
            ))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to store quiz for article %s", article_id)
        raise

    logger.info("Stored quiz %s for article %s (%d questions)", quiz.id, article_id, len(questions))
    return quiz.id
