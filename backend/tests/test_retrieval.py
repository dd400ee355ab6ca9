import numpy as np
import pytest

from cortex.core.errors import ValidationError
from cortex.models import Conversation, Message
from cortex.services.conversations import ExchangePersister
from cortex.services.retrieval import ContextRetriever
from cortex.utils.vectors import cosine_similarities, encode_vector


async def _conversation(session, user_id: str = "user-1") -> Conversation:
    conversation = Conversation(user_id=user_id)
    session.add(conversation)
    await session.commit()
    await session.refresh(conversation)
    return conversation


@pytest.mark.asyncio
async def test_user_without_messages_gets_empty_context(session, settings):
    retriever = ContextRetriever(session, settings)
    assert await retriever.retrieve([1.0, 0.0, 0.0], "user-1") == []


@pytest.mark.asyncio
async def test_message_retrieved_with_its_own_embedding_ranks_first(session, settings):
    conversation = await _conversation(session)
    persister = ExchangePersister(session, settings)
    await persister.persist(conversation.id, "user", "Buy oat milk", False, [0.6, 0.8, 0.0])
    stored = await persister.persist(conversation.id, "assistant", "Added to your list", False, [0.3, 0.1, 0.9])

    items = await ContextRetriever(session, settings).retrieve([0.3, 0.1, 0.9], "user-1", threshold=0.0)

    assert items[0].message_id == stored.id
    assert items[0].content == "Added to your list"
    assert items[0].similarity == pytest.approx(1.0, abs=1e-6)


@pytest.mark.asyncio
async def test_threshold_limit_and_descending_order(session, settings):
    conversation = await _conversation(session)
    persister = ExchangePersister(session, settings)
    vectors = {
        "exact": [1.0, 0.0, 0.0],
        "close": [0.9, 0.1, 0.0],
        "closer": [0.99, 0.01, 0.0],
        "orthogonal": [0.0, 1.0, 0.0],
        "opposite": [-1.0, 0.0, 0.0],
    }
    for content, vector in vectors.items():
        await persister.persist(conversation.id, "user", content, False, vector)

    retriever = ContextRetriever(session, settings)
    items = await retriever.retrieve([1.0, 0.0, 0.0], "user-1")
    assert [item.content for item in items] == ["exact", "closer", "close"]
    assert all(item.similarity > 0.7 for item in items)
    assert items == sorted(items, key=lambda item: item.similarity, reverse=True)

    top_two = await retriever.retrieve([1.0, 0.0, 0.0], "user-1", limit=2)
    assert [item.content for item in top_two] == ["exact", "closer"]


@pytest.mark.asyncio
async def test_similarity_must_strictly_exceed_threshold(session, settings):
    conversation = await _conversation(session)
    await ExchangePersister(session, settings).persist(conversation.id, "user", "same", False, [1.0, 0.0, 0.0])

    items = await ContextRetriever(session, settings).retrieve([1.0, 0.0, 0.0], "user-1", threshold=1.0)
    assert items == []


@pytest.mark.asyncio
async def test_equal_scores_keep_storage_order(session, settings):
    conversation = await _conversation(session)
    persister = ExchangePersister(session, settings)
    for content in ("first", "second", "third"):
        await persister.persist(conversation.id, "user", content, False, [0.0, 0.0, 2.0])

    items = await ContextRetriever(session, settings).retrieve([0.0, 0.0, 1.0], "user-1")
    assert [item.content for item in items] == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_search_is_scoped_to_the_owner_and_skips_unembedded_messages(session, settings):
    mine = await _conversation(session, "user-1")
    theirs = await _conversation(session, "user-2")
    persister = ExchangePersister(session, settings)
    await persister.persist(mine.id, "assistant", "no vector", False, None)
    await persister.persist(theirs.id, "user", "someone else's secret", False, [1.0, 0.0, 0.0])
    await persister.persist(mine.id, "user", "my note", False, [1.0, 0.0, 0.0])

    items = await ContextRetriever(session, settings).retrieve([1.0, 0.0, 0.0], "user-1")
    assert [item.content for item in items] == ["my note"]


@pytest.mark.asyncio
async def test_stored_vectors_with_other_dimensions_are_skipped(session, settings):
    conversation = await _conversation(session)
    session.add(
        Message(
            conversation_id=conversation.id,
            role="user",
            content="legacy vector",
            embedding=encode_vector([1.0, 0.0, 0.0, 0.0]),
            embedding_dim=4,
        )
    )
    await session.commit()

    assert await ContextRetriever(session, settings).retrieve([1.0, 0.0, 0.0], "user-1") == []


@pytest.mark.asyncio
async def test_query_vector_dimension_mismatch_is_rejected(session, settings):
    with pytest.raises(ValidationError):
        await ContextRetriever(session, settings).retrieve([1.0, 0.0], "user-1")


def test_zero_vectors_score_zero():
    scores = cosine_similarities(np.array([0.0, 0.0, 0.0]), np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]]))
    assert np.allclose(scores, [0.0, 0.0])


@pytest.mark.asyncio
async def test_scan_is_limited_to_the_most_recent_embedded_messages(session, settings):
    conversation = await _conversation(session)
    persister = ExchangePersister(session, settings)
    for content in ("oldest", "middle", "newest"):
        await persister.persist(conversation.id, "user", content, False, [1.0, 0.0, 0.0])

    windowed = settings.model_copy(update={"retrieval_scan_window": 2})
    items = await ContextRetriever(session, windowed).retrieve([1.0, 0.0, 0.0], "user-1")

    assert [item.content for item in items] == ["middle", "newest"]
