"""Conversation message ORM model.

Classes:
    MessageRole: Valid author roles for a stored message.
    Message: A single immutable turn of a conversation, optionally carrying its embedding.

Functions:
    touch_conversation(_, connection, target): SQLAlchemy event hook that refreshes
        `Conversation.last_message_at` whenever a message is inserted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, LargeBinary, Text, event
from sqlmodel import Field, SQLModel

from cortex.utils.clock import utcnow

from .conversation import Conversation


class MessageRole(str):
    USER = "user"
    ASSISTANT = "assistant"


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    conversation_id: UUID = Field(foreign_key="conversations.id", index=True, ondelete="CASCADE")
    role: str
    content: str = Field(sa_column=Column(Text, nullable=False))
    is_voice: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    embedding: Optional[bytes] = Field(default=None, sa_column=Column(LargeBinary, nullable=True))
    embedding_dim: Optional[int] = None


@event.listens_for(Message, "after_insert", propagate=True)
def touch_conversation(_, connection, target):
    table = Conversation.__table__
    connection.execute(
        table.update()
        .where(table.c.id == target.conversation_id)
        .values(last_message_at=target.created_at)
    )
