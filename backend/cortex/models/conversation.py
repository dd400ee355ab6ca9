"""Conversation ORM model.

Classes:
    Conversation: A titled thread of messages owned by a single user.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from cortex.utils.clock import utcnow

DEFAULT_CONVERSATION_TITLE = "New Conversation"


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    title: str = Field(default=DEFAULT_CONVERSATION_TITLE)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    last_message_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
