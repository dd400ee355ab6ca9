"""Conversation management endpoints.

Endpoints:
    create_conversation(payload, session): Start an empty conversation for a user.
    list_conversations(user_id, limit, session): Summaries ordered by most recent activity.
    search_conversations(user_id, q, limit, session): Match titles or message content.
    get_conversation(conversation_id, user_id, session): A conversation with its messages, oldest first.
    list_messages(conversation_id, user_id, limit, offset, session): Paginated message reads.
    update_conversation(conversation_id, payload, user_id, session): Rename a conversation.
    regenerate_title(conversation_id, user_id, session): Derive the title from the first user message.
    delete_conversation(conversation_id, user_id, session): Remove a conversation and its messages.

Per-conversation routes require the owning `user_id`; a conversation owned by someone else reads as 404.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.db.session import get_session
from cortex.models import Conversation, Message
from cortex.schemas import (
    ConversationCreateRequest,
    ConversationDetail,
    ConversationResource,
    ConversationSummary,
    ConversationUpdateRequest,
    MessageResource,
)
from cortex.services.conversations import ConversationService

router = APIRouter(prefix="/conversations", tags=["conversations"])

_NOT_FOUND = "Conversation not found"


def _to_conversation_resource(conversation: Conversation) -> ConversationResource:
    return ConversationResource(
        id=conversation.id,
        user_id=conversation.user_id,
        title=conversation.title,
        created_at=conversation.created_at,
        last_message_at=conversation.last_message_at,
    )


def _to_message_resource(message: Message) -> MessageResource:
    return MessageResource(
        id=message.id,
        conversation_id=message.conversation_id,
        role=message.role,
        content=message.content,
        is_voice=message.is_voice,
        created_at=message.created_at,
        has_embedding=message.embedding is not None,
    )


@router.post("", response_model=ConversationResource, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    payload: ConversationCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> ConversationResource:
    conversation = await ConversationService(session).create_conversation(payload.user_id, payload.title)
    return _to_conversation_resource(conversation)


@router.get("", response_model=list[ConversationSummary])
async def list_conversations(
    user_id: str = Query(min_length=1),
    limit: int = Query(default=50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
) -> list[ConversationSummary]:
    return await ConversationService(session).list_user_conversations(user_id, limit=limit)


@router.get("/search", response_model=list[ConversationSummary])
async def search_conversations(
    user_id: str = Query(min_length=1),
    q: str = Query(min_length=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> list[ConversationSummary]:
    return await ConversationService(session).search_conversations(user_id, q, limit=limit)


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: UUID,
    user_id: str = Query(min_length=1),
    session: AsyncSession = Depends(get_session),
) -> ConversationDetail:
    history = await ConversationService(session).get_conversation_history(conversation_id, user_id)
    if history is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    conversation, messages = history
    resource = _to_conversation_resource(conversation)
    return ConversationDetail(
        **resource.model_dump(),
        messages=[_to_message_resource(message) for message in messages],
    )


@router.get("/{conversation_id}/messages", response_model=list[MessageResource])
async def list_messages(
    conversation_id: UUID,
    user_id: str = Query(min_length=1),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> list[MessageResource]:
    service = ConversationService(session)
    if await service.get_owned_conversation(conversation_id, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    messages = await service.get_messages(conversation_id, limit=limit, offset=offset)
    return [_to_message_resource(message) for message in messages]


@router.patch("/{conversation_id}", response_model=ConversationResource)
async def update_conversation(
    conversation_id: UUID,
    payload: ConversationUpdateRequest,
    user_id: str = Query(min_length=1),
    session: AsyncSession = Depends(get_session),
) -> ConversationResource:
    conversation = await ConversationService(session).update_title(conversation_id, user_id, payload.title)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return _to_conversation_resource(conversation)


@router.post("/{conversation_id}/title", response_model=ConversationResource)
async def regenerate_title(
    conversation_id: UUID,
    user_id: str = Query(min_length=1),
    session: AsyncSession = Depends(get_session),
) -> ConversationResource:
    service = ConversationService(session)
    if await service.get_owned_conversation(conversation_id, user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    title = await service.generate_title(conversation_id)
    conversation = await service.update_title(conversation_id, user_id, title)
    return _to_conversation_resource(conversation)  # type: ignore[arg-type]


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    user_id: str = Query(min_length=1),
    session: AsyncSession = Depends(get_session),
) -> Response:
    deleted = await ConversationService(session).delete_conversation(conversation_id, user_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
