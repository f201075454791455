"""Article chat: sessions, message history and the workflow webhook relay.

The relay forwards the user's question with article context and recent
history to an external workflow webhook. When the webhook cannot be reached
or answers with nothing usable, a canned reply built from the article is
returned instead, so the user always gets a response.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsiq.config import get_settings
from newsiq.db.models import Article, ChatMessage, ChatSession
from newsiq.redis_client import publish_event

logger = structlog.get_logger()

STATUS_SUCCESS = "success"
STATUS_FALLBACK = "fallback"

# Keys the workflow may use for its answer, in priority order
REPLY_KEYS = ("message", "response", "answer", "output")


class ChatError(Exception):
    """Chat request that cannot be served. ``status_code`` is the HTTP status to answer with."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ChatReply:
    message: str
    status: str
    session_id: uuid.UUID


# ---------------------------------------------------------------------------
# Sessions and messages
# ---------------------------------------------------------------------------


async def get_chat_session(db: AsyncSession, session_id: uuid.UUID) -> ChatSession | None:
    return await db.get(ChatSession, session_id)


async def get_or_create_chat_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    article_id: uuid.UUID,
    article_title: str,
) -> ChatSession:
    """The user's chat session for an article, created on first use."""
    result = await db.execute(
        select(ChatSession)
        .where(ChatSession.user_id == user_id, ChatSession.article_id == article_id)
        .order_by(ChatSession.created_at)
        .limit(1)
    )
    session = result.scalar_one_or_none()
    if session is not None:
        return session

    session = ChatSession(user_id=user_id, article_id=article_id, title=f"Chat about: {article_title}")
    db.add(session)
    await db.commit()
    logger.info("chat_session_created", session_id=str(session.id), article_id=str(article_id))
    return session


async def get_chat_messages(db: AsyncSession, session_id: uuid.UUID) -> list[ChatMessage]:
    """All messages in a session, oldest first."""
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    return list(result.scalars().all())


async def get_recent_messages(db: AsyncSession, session_id: uuid.UUID, limit: int) -> list[ChatMessage]:
    """The last ``limit`` messages of a session, oldest first."""
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
    )
    return list(reversed(result.scalars().all()))


async def add_chat_message(
    db: AsyncSession,
    redis: object | None,
    session: ChatSession,
    message: str,
    role: str,
) -> ChatMessage:
    """Persist one message and fan it out to realtime subscribers."""
    now = datetime.now(timezone.utc)
    row = ChatMessage(session_id=session.id, message=message, role=role, created_at=now)
    db.add(row)
    session.updated_at = now
    await db.commit()

    await publish_event(
        redis,
        "pubsub:chat_message",
        {
            "id": str(row.id),
            "session_id": str(session.id),
            "message": row.message,
            "role": row.role,
            "created_at": row.created_at.isoformat(),
        },
    )
    return row


# ---------------------------------------------------------------------------
# Relay
# ---------------------------------------------------------------------------


def fallback_reply(article: Article) -> str:
    """Canned answer used whenever the workflow gives nothing usable."""
    summary = article.summary.strip() if article.summary else ""
    if summary:
        return (
            "I can't reach the AI assistant right now, so here is the gist of "
            f'"{article.title}": {summary}'
        )
    return (
        "I can't reach the AI assistant right now. Please try again in a moment, "
        f'or keep reading "{article.title}" and ask me again later.'
    )


def extract_reply(data: Any) -> str | None:  # noqa: ANN401
    """Pull the answer text out of a workflow response body.

    Accepts a JSON object or a one-element list wrapping one.
    """
    if isinstance(data, list) and data:
        data = data[0]
    if not isinstance(data, dict):
        return None
    for key in REPLY_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


async def call_workflow(client: httpx.AsyncClient, url: str, payload: dict[str, Any]) -> str | None:
    """POST to the workflow webhook. Returns the reply text, or None on any failure."""
    try:
        response = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        logger.warning("chat_webhook_unreachable", error=str(e))
        return None

    if not response.is_success:
        logger.warning("chat_webhook_error", status=response.status_code, body=response.text[:500])
        return None

    try:
        data = response.json()
    except ValueError:
        logger.warning("chat_webhook_invalid_json", body=response.text[:500])
        return None

    reply = extract_reply(data)
    if reply is None:
        logger.warning("chat_webhook_empty_reply")
    return reply


async def relay_chat_message(
    db: AsyncSession,
    redis: object | None,
    user_message: str,
    article_id: uuid.UUID,
    user_id: uuid.UUID,
    session_id: uuid.UUID | None = None,
    is_voice: bool = False,
    client: httpx.AsyncClient | None = None,
) -> ChatReply:
    """Answer a user's question about an article and record both sides of the exchange.

    Raises:
        ChatError: If the article or session does not exist (404) or the
            session belongs to someone else (403).
    """
    settings = get_settings()

    article = await db.get(Article, article_id)
    if article is None:
        raise ChatError("Article not found", status_code=404)

    if session_id is None:
        session = await get_or_create_chat_session(db, user_id, article_id, article.title)
    else:
        session = await get_chat_session(db, session_id)
        if session is None:
            raise ChatError("Chat session not found", status_code=404)
        if session.user_id != user_id:
            raise ChatError("Chat session belongs to another user", status_code=403)

    history = await get_recent_messages(db, session.id, settings.chat_history_limit)
    payload = {
        "userMessage": user_message,
        "userId": str(user_id),
        "sessionId": str(session.id),
        "isVoice": is_voice,
        "articleContext": {
            "title": article.title,
            "content": article.content,
            "summary": article.summary,
        },
        "chatHistory": [{"role": m.role, "content": m.message} for m in history],
    }

    reply: str | None = None
    if settings.chat_webhook_url:
        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)
        try:
            reply = await call_workflow(client, settings.chat_webhook_url, payload)
        finally:
            if owns_client:
                await client.aclose()
    else:
        logger.warning("chat_webhook_not_configured")

    status = STATUS_SUCCESS
    if reply is None:
        reply = fallback_reply(article)
        status = STATUS_FALLBACK

    await add_chat_message(db, redis, session, user_message, "user")
    await add_chat_message(db, redis, session, reply, "assistant")

    logger.info(
        "chat_relayed",
        session_id=str(session.id), article_id=str(article_id), status=status, is_voice=is_voice,
    )
    return ChatReply(message=reply, status=status, session_id=session.id)
