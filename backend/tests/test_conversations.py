from datetime import timedelta
from uuid import UUID

import pytest
from sqlmodel import select

from cortex.core.errors import ValidationError
from cortex.models import Conversation, Message, Profile
from cortex.services.conversations import ConversationService, ExchangePersister
from cortex.utils.text import make_conversation_title


async def _seed(session, settings, user_id: str, title: str, contents: list[str]) -> Conversation:
    conversation = await ConversationService(session).create_conversation(user_id, title)
    persister = ExchangePersister(session, settings)
    for index, content in enumerate(contents):
        role = "user" if index % 2 == 0 else "assistant"
        await persister.persist(conversation.id, role, content, False, None)
    return conversation


def test_make_conversation_title_truncates_and_collapses_whitespace():
    assert make_conversation_title("  Plan   my week  ") == "Plan my week"
    long_message = "word " * 20
    title = make_conversation_title(long_message)
    assert title.endswith("...")
    assert len(title) <= 53


@pytest.mark.asyncio
async def test_persist_rejects_foreign_embedding_dimensions(session, settings):
    conversation = await ConversationService(session).create_conversation("user-1")
    with pytest.raises(ValidationError):
        await ExchangePersister(session, settings).persist(conversation.id, "user", "hi", False, [1.0, 2.0])
    with pytest.raises(ValidationError):
        await ExchangePersister(session, settings).persist(conversation.id, "system", "hi", False, None)


@pytest.mark.asyncio
async def test_append_refreshes_last_message_at(session, settings):
    conversation = await ConversationService(session).create_conversation("user-1")
    before = conversation.last_message_at

    message = await ExchangePersister(session, settings).persist(conversation.id, "user", "hello", True, None)

    await session.refresh(conversation)
    assert conversation.last_message_at == message.created_at
    assert conversation.last_message_at >= before


@pytest.mark.asyncio
async def test_list_conversations_returns_summaries_most_recent_first(client, session, settings):
    older = await _seed(session, settings, "user-1", "Errands", ["buy stamps", "noted"])
    newer = await _seed(session, settings, "user-1", "Workout", ["leg day?", "yes", "thanks"])
    await _seed(session, settings, "user-2", "Private", ["not yours"])

    response = await client.get("/conversations", params={"user_id": "user-1"})

    assert response.status_code == 200
    payload = response.json()
    assert [item["id"] for item in payload] == [str(newer.id), str(older.id)]
    assert payload[0]["message_count"] == 3
    assert payload[0]["last_message_content"] == "thanks"
    assert payload[1]["message_count"] == 2


@pytest.mark.asyncio
async def test_search_matches_titles_and_message_content(client, session, settings):
    by_title = await _seed(session, settings, "user-1", "Dentist booking", ["call them"])
    by_content = await _seed(session, settings, "user-1", "Misc", ["the dentist said 3pm"])
    await _seed(session, settings, "user-1", "Groceries", ["apples"])
    await _seed(session, settings, "user-2", "Dentist", ["other user"])

    response = await client.get("/conversations/search", params={"user_id": "user-1", "q": "dentist"})

    assert response.status_code == 200
    assert {item["id"] for item in response.json()} == {str(by_title.id), str(by_content.id)}


@pytest.mark.asyncio
async def test_conversation_detail_and_paginated_messages(client, session, settings):
    conversation = await _seed(session, settings, "user-1", "Chat", ["one", "two", "three", "four"])

    detail = await client.get(f"/conversations/{conversation.id}", params={"user_id": "user-1"})
    assert detail.status_code == 200
    body = detail.json()
    assert [message["content"] for message in body["messages"]] == ["one", "two", "three", "four"]
    assert [message["role"] for message in body["messages"]] == ["user", "assistant", "user", "assistant"]

    page = await client.get(
        f"/conversations/{conversation.id}/messages", params={"user_id": "user-1", "limit": 2, "offset": 1}
    )
    assert page.status_code == 200
    assert [message["content"] for message in page.json()] == ["two", "three"]


@pytest.mark.asyncio
async def test_create_rename_and_regenerate_title(client, session, settings):
    created = await client.post("/conversations", json={"user_id": "user-1"})
    assert created.status_code == 201
    conversation_id = created.json()["id"]
    assert created.json()["title"] == "New Conversation"

    owner = {"user_id": "user-1"}
    renamed = await client.patch(f"/conversations/{conversation_id}", params=owner, json={"title": "  Weekly plan  "})
    assert renamed.status_code == 200
    assert renamed.json()["title"] == "Weekly plan"

    regenerated = await client.post(f"/conversations/{conversation_id}/title", params=owner)
    assert regenerated.json()["title"] == "New Conversation"

    conversation = await session.get(Conversation, UUID(conversation_id))
    persister = ExchangePersister(session, settings)
    await persister.persist(conversation.id, "user", "Help me plan   the team offsite next month", False, None)
    regenerated = await client.post(f"/conversations/{conversation_id}/title", params=owner)
    assert regenerated.json()["title"] == "Help me plan the team offsite next month"


@pytest.mark.asyncio
async def test_delete_cascades_to_messages(client, session, settings):
    conversation = await _seed(session, settings, "user-1", "Temp", ["a", "b"])

    owner = {"user_id": "user-1"}
    response = await client.delete(f"/conversations/{conversation.id}", params=owner)
    assert response.status_code == 204

    remaining = await session.exec(select(Message))
    assert remaining.all() == []
    missing = await client.get(f"/conversations/{conversation.id}", params=owner)
    assert missing.status_code == 404
    assert (await client.delete(f"/conversations/{conversation.id}", params=owner)).status_code == 404


@pytest.mark.asyncio
async def test_conversations_of_other_users_read_as_missing(client, session, settings):
    conversation = await _seed(session, settings, "user-2", "Banking", ["my bank pin is 1234"])
    intruder = {"user_id": "user-1"}

    read = await client.get(f"/conversations/{conversation.id}", params=intruder)
    assert read.status_code == 404
    messages = await client.get(f"/conversations/{conversation.id}/messages", params=intruder)
    assert messages.status_code == 404
    renamed = await client.patch(f"/conversations/{conversation.id}", params=intruder, json={"title": "pwned"})
    assert renamed.status_code == 404
    regenerated = await client.post(f"/conversations/{conversation.id}/title", params=intruder)
    assert regenerated.status_code == 404
    deleted = await client.delete(f"/conversations/{conversation.id}", params=intruder)
    assert deleted.status_code == 404

    await session.refresh(conversation)
    assert conversation.title == "Banking"
    remaining = await session.exec(select(Message).where(Message.conversation_id == conversation.id))
    assert [message.content for message in remaining.all()] == ["my bank pin is 1234"]


@pytest.mark.asyncio
async def test_conversation_routes_require_user_id(client, session, settings):
    conversation = await _seed(session, settings, "user-1", "Chat", ["hi"])

    assert (await client.get(f"/conversations/{conversation.id}")).status_code == 422
    assert (await client.delete(f"/conversations/{conversation.id}")).status_code == 422


@pytest.mark.asyncio
async def test_blank_search_query_matches_nothing(client, session, settings):
    await _seed(session, settings, "user-1", "Dentist booking", ["call them"])

    response = await client.get("/conversations/search", params={"user_id": "user-1", "q": "   "})

    assert response.status_code == 200
    assert response.json() == []
    assert await ConversationService(session).search_conversations("user-1", "  ") == []


def test_new_rows_carry_timezone_aware_timestamps():
    conversation = Conversation(user_id="user-1")
    message = Message(conversation_id=conversation.id, role="user", content="hi")
    profile = Profile(id="user-1")

    for stamp in (conversation.created_at, conversation.last_message_at, message.created_at, profile.updated_at):
        assert stamp.tzinfo is not None
        assert stamp.utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_timestamped_rows_round_trip_through_the_database(session, settings):
    conversation = await ConversationService(session).create_conversation("user-1", "Timestamps")
    message = await ExchangePersister(session, settings).persist(conversation.id, "user", "hello", False, None)
    session.add(Profile(id="user-1", nickname="Alex"))
    await session.commit()

    stored = await session.exec(select(Message).where(Message.id == message.id))
    assert stored.one().content == "hello"
    profile = await session.get(Profile, "user-1")
    assert profile is not None
    assert profile.updated_at is not None
