"""User router: all /api/v1/users/me profile and preference endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.auth.dependencies import get_current_user
from newsiq.database import get_session
from newsiq.db.models import Profile, UserPreferences
from newsiq.users.schemas import (
    LoginEventResponse,
    PreferencesResponse,
    PreferencesUpdateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
)
from newsiq.users.service import (
    fetch_user_preferences,
    fetch_user_profile,
    update_user_preferences,
    update_user_profile,
)
from newsiq.users.webhooks import send_login_webhook

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _preferences_response(preferences: UserPreferences) -> PreferencesResponse:
    return PreferencesResponse(
        categories=preferences.categories or [],
        difficulty_level=preferences.difficulty_level,
        content_format=preferences.content_format,
        notification_times=preferences.notification_times or [],
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Own profile with leaderboard stats."""
    return ProfileResponse(**await fetch_user_profile(db, user))


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Update username, full name or avatar."""
    try:
        user = await update_user_profile(
            db,
            user,
            username=body.username,
            full_name=body.full_name,
            avatar_url=body.avatar_url,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return ProfileResponse(**await fetch_user_profile(db, user))


@router.post("/me/login", response_model=LoginEventResponse)
async def record_login(user: Profile = Depends(get_current_user)) -> LoginEventResponse:
    """Called by the client after sign-in; forwards the event to the workflow service."""
    return LoginEventResponse(delivered=await send_login_webhook(user.id))


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


@router.get("/me/preferences", response_model=PreferencesResponse)
async def get_preferences(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PreferencesResponse:
    return _preferences_response(await fetch_user_preferences(db, user.id))


@router.patch("/me/preferences", response_model=PreferencesResponse)
async def update_preferences(
    body: PreferencesUpdateRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PreferencesResponse:
    """Partial update; the row is created on first save."""
    try:
        preferences = await update_user_preferences(
            db,
            user.id,
            categories=body.categories,
            difficulty_level=body.difficulty_level,
            content_format=body.content_format,
            notification_times=body.notification_times,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return _preferences_response(preferences)
