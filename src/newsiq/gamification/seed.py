"""Achievement catalog seed data."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.dialect import upsert_insert
from newsiq.db.models import Achievement

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    # Reading
    {
        "name": "Avid Reader",
        "description": "Read 5 articles",
        "criteria": "Read 5 articles",
        "icon_url": "\U0001f4d6",
    },
    {
        "name": "Article Collector",
        "description": "Save 10 articles to your library",
        "criteria": "Save 10 articles",
        "icon_url": "\U0001f516",
    },
    {
        "name": "Streak Hunter",
        "description": "Read on 7 consecutive days",
        "criteria": "Reach a 7-day reading streak",
        "icon_url": "\U0001f525",
    },
    # Quizzes
    {
        "name": "Quiz Master",
        "description": "Score 100% on 5 quizzes",
        "criteria": "Score 100% on 5 quizzes",
        "icon_url": "\U0001f9e0",
    },
    {
        "name": "Quiz Enthusiast",
        "description": "Take 10 quizzes",
        "criteria": "Complete 10 quiz attempts",
        "icon_url": "\u270f\ufe0f",
    },
    # Points
    {
        "name": "Point Collector",
        "description": "Earn 500 points",
        "criteria": "Reach 500 total points",
        "icon_url": "\u2b50",
    },
    {
        "name": "Point Master",
        "description": "Earn 1,000 points",
        "criteria": "Reach 1000 total points",
        "icon_url": "\U0001f451",
    },
    # Catalog only, granted by nothing yet
    {
        "name": "First Steps",
        "description": "Complete your first article quiz",
        "criteria": "Complete 1 quiz",
        "icon_url": "\U0001f3c6",
    },
    {
        "name": "Knowledge Seeker",
        "description": "Read 10 articles",
        "criteria": "Read 10 articles",
        "icon_url": "\U0001f4da",
    },
    {
        "name": "Well Rounded",
        "description": "Read articles from 5 different categories",
        "criteria": "Read articles from 5 different categories",
        "icon_url": "\U0001f30d",
    },
]


async def seed_achievements(db: AsyncSession) -> int:
    """Insert any missing catalog entries by name. Existing rows are left untouched.

    Returns the number of rows inserted.
    """
    seeded = 0
    for data in ACHIEVEMENT_SEED_DATA:
        stmt = upsert_insert(db, Achievement).values(**data)
        stmt = stmt.on_conflict_do_nothing(index_elements=["name"])
        result = await db.execute(stmt)
        seeded += result.rowcount or 0

    await db.commit()
    logger.info("Seeded %d achievement definitions", seeded)
    return seeded
