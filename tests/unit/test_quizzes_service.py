"""Quiz lookup and question-set replacement."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from newsiq.db.models import QuizQuestion
from newsiq.quizzes.service import create_or_update_quiz, fetch_quiz_by_article_id, get_quiz


def _questions(*texts: str) -> list[dict]:
    return [
        {
            "question_number": i + 1,
            "question_text": text,
            "options": ["A", "B", "C", "D"],
            "correct_answer": i % 4,
            "explanation": f"Because of {text}",
        }
        for i, text in enumerate(texts)
    ]


class TestQuizStorage:
    @pytest.mark.asyncio
    async def test_create_with_default_title(self, db_session, article):
        quiz_id = await create_or_update_quiz(db_session, article.id, _questions("Who?", "What?"))

        quiz = await get_quiz(db_session, quiz_id)
        assert quiz.article_id == article.id
        assert quiz.title == f"Quiz for article {article.id}"

    @pytest.mark.asyncio
    async def test_questions_returned_in_order(self, db_session, article):
        questions = _questions("First", "Second", "Third")
        questions.reverse()
        await create_or_update_quiz(db_session, article.id, questions)

        quiz, stored = await fetch_quiz_by_article_id(db_session, article.id)
        assert [q.question_text for q in stored] == ["First", "Second", "Third"]
        assert stored[0].options == ["A", "B", "C", "D"]

    @pytest.mark.asyncio
    async def test_update_replaces_questions_and_title(self, db_session, article):
        first_id = await create_or_update_quiz(db_session, article.id, _questions("Old 1", "Old 2", "Old 3"))
        second_id = await create_or_update_quiz(db_session, article.id, _questions("New"), title="Revised")

        assert first_id == second_id
        quiz, stored = await fetch_quiz_by_article_id(db_session, article.id)
        assert quiz.title == "Revised"
        assert [q.question_text for q in stored] == ["New"]
        count = (await db_session.execute(select(func.count()).select_from(QuizQuestion))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_explanation_optional(self, db_session, article):
        question = {"question_number": 1, "question_text": "Q", "options": ["x", "y"], "correct_answer": 1}
        await create_or_update_quiz(db_session, article.id, [question])
        _, stored = await fetch_quiz_by_article_id(db_session, article.id)
        assert stored[0].explanation == ""

    @pytest.mark.asyncio
    async def test_missing_quiz(self, db_session, article):
        assert await fetch_quiz_by_article_id(db_session, article.id) is None

    @pytest.mark.asyncio
    async def test_quiz_without_questions(self, db_session, quiz, article):
        found, questions = await fetch_quiz_by_article_id(db_session, article.id)
        assert found.id == quiz.id
        assert questions == []
