"""Pydantic models for chat endpoints.

The relay endpoint keeps the camelCase body used by the web client.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_message: str = Field(..., alias="userMessage", min_length=1)
    article_id: uuid.UUID = Field(..., alias="articleId")
    user_id: uuid.UUID = Field(..., alias="userId")
    session_id: uuid.UUID | None = Field(None, alias="sessionId")
    is_voice: bool = Field(False, alias="isVoice")


class ChatReplyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    n8n_status: str = Field(..., serialization_alias="n8nStatus")
    session_id: uuid.UUID = Field(..., serialization_alias="sessionId")


class ChatSessionResponse(BaseModel):
    id: uuid.UUID
    article_id: uuid.UUID
    title: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChatMessageResponse(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    message: str
    role: str
    created_at: datetime | None = None


class ChatMessagesResponse(BaseModel):
    messages: list[ChatMessageResponse]
