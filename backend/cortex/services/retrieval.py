"""Similarity search over a user's stored message embeddings.

Classes:
    RetrievedContextItem: A past message judged relevant to the current query.
    ContextRetriever: Threshold-filtered, top-K cosine search scoped to the conversations a user owns.

The search is an exact in-memory scan. Each call decodes at most `retrieval_scan_window` of the user's
most recent embedded messages, so older history drops out of reach once that window is full.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence
from uuid import UUID

import numpy as np
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.core.config import Settings, get_settings
from cortex.core.errors import ValidationError
from cortex.models import Conversation, Message
from cortex.utils.vectors import cosine_similarities, decode_vector

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RetrievedContextItem:
    message_id: UUID
    content: str
    similarity: float


class ContextRetriever:
    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    async def retrieve(
        self,
        query_vector: Sequence[float],
        user_id: str,
        *,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> list[RetrievedContextItem]:
        """Return up to *limit* messages whose similarity to *query_vector* exceeds *threshold*.

        Results are ordered by descending similarity; equal scores keep storage order
        (oldest first). An empty list means there is nothing relevant to inject.
        """

        match_threshold = self._settings.retrieval_match_threshold if threshold is None else threshold
        match_count = self._settings.retrieval_match_count if limit is None else limit
        dim = self._settings.embedding_dimensions

        query = np.asarray(query_vector, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != dim:
            raise ValidationError(f"Query vector must have {dim} dimensions, received {query.size}")
        if match_count <= 0:
            return []

        stmt = (
            select(Message.id, Message.content, Message.embedding, Message.embedding_dim)
            .join(Conversation, col(Conversation.id) == col(Message.conversation_id))
            .where(Conversation.user_id == user_id)
            .where(col(Message.embedding).is_not(None))
            .order_by(col(Message.created_at).desc(), col(Message.id).desc())
            .limit(self._settings.retrieval_scan_window)
        )
        rows = list(reversed((await self._session.exec(stmt)).all()))

        ids: list[UUID] = []
        contents: list[str] = []
        vectors: list[np.ndarray] = []
        skipped = 0
        for message_id, content, blob, stored_dim in rows:
            vector = decode_vector(blob)
            if vector.shape[0] != dim or (stored_dim is not None and stored_dim != dim):
                skipped += 1
                continue
            ids.append(message_id)
            contents.append(content)
            vectors.append(vector)
        if skipped:
            _LOGGER.warning(
                "Skipped %d stored embeddings with unexpected dimensionality for user %s",
                skipped,
                user_id,
            )
        if not vectors:
            return []

        similarities = cosine_similarities(query, np.vstack(vectors))
        order = np.argsort(-similarities, kind="stable")
        items: list[RetrievedContextItem] = []
        for index in order:
            score = float(similarities[index])
            if score <= match_threshold:
                break
            items.append(RetrievedContextItem(message_id=ids[index], content=contents[index], similarity=score))
            if len(items) >= match_count:
                break
        return items
