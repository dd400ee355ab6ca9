"""Conversation storage services.

Classes:
    ExchangePersister: Appends user and assistant messages (with embeddings) to a conversation.
    ConversationService: Conversation CRUD, ordered message reads, summaries, and search.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.core.config import Settings, get_settings
from cortex.core.errors import ValidationError
from cortex.models import DEFAULT_CONVERSATION_TITLE, Conversation, Message, MessageRole
from cortex.schemas import ConversationSummary
from cortex.utils.text import make_conversation_title
from cortex.utils.vectors import encode_vector

_LOGGER = logging.getLogger(__name__)

_VALID_ROLES = {MessageRole.USER, MessageRole.ASSISTANT}


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ExchangePersister:
    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    async def persist(
        self,
        conversation_id: UUID,
        role: str,
        content: str,
        is_voice: bool,
        embedding: Optional[Sequence[float]] = None,
    ) -> Message:
        """Store one message; the conversation's `last_message_at` follows via the insert hook."""

        if role not in _VALID_ROLES:
            raise ValidationError(f"Unsupported message role: {role}")
        blob: bytes | None = None
        dim: int | None = None
        if embedding is not None:
            dim = len(embedding)
            if dim != self._settings.embedding_dimensions:
                raise ValidationError(
                    f"Embedding dimension mismatch: expected {self._settings.embedding_dimensions}, received {dim}"
                )
            blob = encode_vector(embedding)

        message = Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            is_voice=is_voice,
            embedding=blob,
            embedding_dim=dim,
        )
        self._session.add(message)
        await self._session.commit()
        await self._session.refresh(message)
        _LOGGER.debug("Persisted %s message %s in conversation %s", role, message.id, conversation_id)
        return message


class ConversationService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_conversation(self, user_id: str, title: Optional[str] = None) -> Conversation:
        conversation = Conversation(user_id=user_id, title=(title or "").strip() or DEFAULT_CONVERSATION_TITLE)
        self._session.add(conversation)
        await self._session.commit()
        await self._session.refresh(conversation)
        return conversation

    async def get_owned_conversation(self, conversation_id: UUID, user_id: str) -> Optional[Conversation]:
        conversation = await self._session.get(Conversation, conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return conversation

    async def get_messages(self, conversation_id: UUID, *, limit: int = 100, offset: int = 0) -> list[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(col(Message.created_at), col(Message.id))
            .offset(offset)
            .limit(limit)
        )
        return list((await self._session.exec(stmt)).all())

    async def recent_messages(self, conversation_id: UUID, limit: int) -> list[Message]:
        """Return the newest *limit* messages, oldest first."""

        if limit <= 0:
            return []
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(col(Message.created_at).desc(), col(Message.id).desc())
            .limit(limit)
        )
        newest_first = list((await self._session.exec(stmt)).all())
        return list(reversed(newest_first))

    async def get_conversation_history(
        self, conversation_id: UUID, user_id: str
    ) -> Optional[tuple[Conversation, list[Message]]]:
        conversation = await self.get_owned_conversation(conversation_id, user_id)
        if conversation is None:
            return None
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(col(Message.created_at), col(Message.id))
        )
        messages = list((await self._session.exec(stmt)).all())
        return conversation, messages

    async def list_user_conversations(self, user_id: str, *, limit: int = 50) -> list[ConversationSummary]:
        stmt = (
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(col(Conversation.last_message_at).desc())
            .limit(limit)
        )
        conversations = list((await self._session.exec(stmt)).all())
        return await self._summarise(conversations)

    async def search_conversations(self, user_id: str, query: str, *, limit: int = 20) -> list[ConversationSummary]:
        query = query.strip()
        if not query:
            return []
        pattern = _like_pattern(query)
        matching_ids = (
            select(Message.conversation_id)
            .where(col(Message.content).ilike(pattern, escape="\\"))
        )
        stmt = (
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .where(
                or_(
                    col(Conversation.title).ilike(pattern, escape="\\"),
                    col(Conversation.id).in_(matching_ids),
                )
            )
            .order_by(col(Conversation.last_message_at).desc())
            .limit(limit)
        )
        conversations = list((await self._session.exec(stmt)).all())
        return await self._summarise(conversations)

    async def update_title(self, conversation_id: UUID, user_id: str, title: str) -> Optional[Conversation]:
        conversation = await self.get_owned_conversation(conversation_id, user_id)
        if conversation is None:
            return None
        conversation.title = title
        self._session.add(conversation)
        await self._session.commit()
        await self._session.refresh(conversation)
        return conversation

    async def generate_title(self, conversation_id: UUID) -> str:
        """Suggest a title from the first user message among the opening turns."""

        opening = await self.get_messages(conversation_id, limit=3)
        first_user = next((message for message in opening if message.role == MessageRole.USER), None)
        if first_user is None:
            return DEFAULT_CONVERSATION_TITLE
        return make_conversation_title(first_user.content) or DEFAULT_CONVERSATION_TITLE

    async def delete_conversation(self, conversation_id: UUID, user_id: str) -> bool:
        conversation = await self.get_owned_conversation(conversation_id, user_id)
        if conversation is None:
            return False
        await self._session.execute(delete(Message).where(col(Message.conversation_id) == conversation_id))
        await self._session.delete(conversation)
        await self._session.commit()
        return True

    async def _summarise(self, conversations: Sequence[Conversation]) -> list[ConversationSummary]:
        if not conversations:
            return []
        ids = [conversation.id for conversation in conversations]

        count_stmt = (
            select(Message.conversation_id, func.count())
            .where(col(Message.conversation_id).in_(ids))
            .group_by(col(Message.conversation_id))
        )
        counts = {conversation_id: count for conversation_id, count in (await self._session.exec(count_stmt)).all()}

        latest_stmt = (
            select(Message.conversation_id, Message.content)
            .where(col(Message.conversation_id).in_(ids))
            .order_by(col(Message.created_at).desc(), col(Message.id).desc())
        )
        latest: dict[UUID, str] = {}
        for conversation_id, content in (await self._session.exec(latest_stmt)).all():
            latest.setdefault(conversation_id, content)

        return [
            ConversationSummary(
                id=conversation.id,
                user_id=conversation.user_id,
                title=conversation.title,
                created_at=conversation.created_at,
                last_message_at=conversation.last_message_at,
                message_count=counts.get(conversation.id, 0),
                last_message_content=latest.get(conversation.id),
            )
            for conversation in conversations
        ]
