"""FastAPI authentication dependencies."""

from __future__ import annotations

import uuid

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.auth.jwt import verify_token
from newsiq.auth.service import get_or_create_profile
from newsiq.database import get_session
from newsiq.db.models import Profile

_bearer = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Profile:
    """
    Verify the hosted-auth bearer token and return the caller's profile.

    The profile row is created on the first authenticated request.
    Raises 401 on an invalid token.
    """
    try:
        payload = verify_token(credentials.credentials)
        user_id = uuid.UUID(payload["sub"])
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token subject") from e

    return await get_or_create_profile(db, user_id, payload)
