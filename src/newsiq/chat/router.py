"""Article chat endpoints.

``POST /api/v1/chat`` answers with ``{message, n8nStatus}`` on success and
``{error}`` with 400/403/404/500 otherwise, matching what the web client
expects from the chat relay.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.articles.service import fetch_article_by_id
from newsiq.auth.dependencies import get_current_user
from newsiq.chat.schemas import (
    ChatMessageResponse,
    ChatMessagesResponse,
    ChatReplyResponse,
    ChatRequest,
    ChatSessionResponse,
)
from newsiq.chat.service import (
    ChatError,
    get_chat_messages,
    get_chat_session,
    get_or_create_chat_session,
    relay_chat_message,
)
from newsiq.database import get_session
from newsiq.db.models import ChatSession, Profile
from newsiq.redis_client import get_redis_or_none

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Chat"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _session_response(session: ChatSession) -> ChatSessionResponse:
    return ChatSessionResponse(
        id=session.id,
        article_id=session.article_id,
        title=session.title,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.post("/chat")
async def post_chat_message(
    request: Request,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_or_none),
) -> JSONResponse:
    """Relay a question about an article to the AI workflow."""
    try:
        body = ChatRequest.model_validate(await request.json())
    except (ValueError, ValidationError):
        return _error(400, "Missing required parameters")

    if body.user_id != user.id:
        return _error(403, "userId does not match the signed-in user")

    try:
        reply = await relay_chat_message(
            db,
            redis,
            body.user_message,
            body.article_id,
            body.user_id,
            session_id=body.session_id,
            is_voice=body.is_voice,
        )
    except ChatError as e:
        return _error(e.status_code, str(e))
    except Exception as e:
        await db.rollback()
        logger.exception("chat_relay_failed", article_id=str(body.article_id))
        return _error(500, str(e) or "Internal server error")

    response = ChatReplyResponse(message=reply.message, n8n_status=reply.status, session_id=reply.session_id)
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


@router.post("/articles/{article_id}/chat-session", response_model=ChatSessionResponse)
async def open_chat_session(
    article_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Get or create the caller's chat session for an article."""
    article = await fetch_article_by_id(db, article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    session = await get_or_create_chat_session(db, user.id, article_id, article.title)
    return _session_response(session)


@router.get("/chat/sessions/{session_id}/messages", response_model=ChatMessagesResponse)
async def list_chat_messages(
    session_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Messages in a session, oldest first."""
    session = await get_chat_session(db, session_id)
    if session is None or session.user_id != user.id:
        raise HTTPException(status_code=404, detail="Chat session not found")

    messages = await get_chat_messages(db, session_id)
    return ChatMessagesResponse(
        messages=[
            ChatMessageResponse(
                id=m.id,
                session_id=m.session_id,
                message=m.message,
                role=m.role,
                created_at=m.created_at,
            )
            for m in messages
        ]
    )
