"""Pydantic schemas for conversation management endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ConversationCreateRequest(BaseModel):
    user_id: str = Field(min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)


class ConversationUpdateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped


class ConversationResource(BaseModel):
    id: UUID
    user_id: str
    title: str
    created_at: datetime
    last_message_at: datetime


class MessageResource(BaseModel):
    id: UUID
    conversation_id: UUID
    role: Literal["user", "assistant"]
    content: str
    is_voice: bool
    created_at: datetime
    has_embedding: bool = False


class ConversationDetail(ConversationResource):
    messages: list[MessageResource] = Field(default_factory=list)


class ConversationSummary(ConversationResource):
    message_count: int
    last_message_content: Optional[str] = None
