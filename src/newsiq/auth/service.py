"""Profile lookup and lazy creation for authenticated users."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.db.models import Profile

logger = structlog.get_logger()


async def get_profile_by_id(db: AsyncSession, user_id: uuid.UUID) -> Profile | None:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_profile(db: AsyncSession, user_id: uuid.UUID, claims: dict[str, Any] | None = None) -> Profile:
    """Return the user's profile, creating it from token claims on first sight."""
    profile = await get_profile_by_id(db, user_id)
    if profile is not None:
        return profile

    claims = claims or {}
    metadata = claims.get("user_metadata") or {}
    now = datetime.now(timezone.utc)
    profile = Profile(
        id=user_id,
        email=claims.get("email"),
        username=metadata.get("username"),
        full_name=metadata.get("full_name"),
        avatar_url=metadata.get("avatar_url"),
        created_at=now,
        updated_at=now,
    )
    db.add(profile)
    await db.commit()
    logger.info("profile_created", user_id=str(user_id))
    return profile
