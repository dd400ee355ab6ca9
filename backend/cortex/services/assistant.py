"""High level orchestration for voice and text commands.

Classes:
    VoiceCommandService: Validates a command, gathers personalisation and retrieved context, calls the
        completion API, and persists the exchange.

The pipeline runs as a single pass:
    validate -> load profile + embed message (concurrently) -> retrieve -> compose -> complete
    -> embed reply (best effort) -> persist user message -> persist reply -> respond

Every failure is converted into a `VoiceCommandError` envelope; writes that were committed before the
failure are kept.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.core.config import Settings, get_settings
from cortex.core.errors import CortexError, UpstreamError, ValidationError
from cortex.models import Conversation, MessageRole
from cortex.schemas import ExchangeEmbeddings, VoiceCommandError, VoiceCommandRequest, VoiceCommandResponse
from cortex.services.conversations import ConversationService, ExchangePersister
from cortex.services.openai_client import CompletionClient, EmbeddingClient
from cortex.services.profiles import ProfileLoader
from cortex.services.prompting import PromptComposer, PromptMessage
from cortex.services.retrieval import ContextRetriever
from cortex.utils.clock import utcnow
from cortex.utils.text import make_conversation_title

_LOGGER = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class VoiceCommandService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        embedding_client: Optional[EmbeddingClient] = None,
        completion_client: Optional[CompletionClient] = None,
        composer: Optional[PromptComposer] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._embeddings = embedding_client or EmbeddingClient(settings=self._settings)
        self._completions = completion_client or CompletionClient(settings=self._settings)
        self._composer = composer or PromptComposer(self._settings)
        self._profiles = ProfileLoader(session)
        self._retriever = ContextRetriever(session, self._settings)
        self._persister = ExchangePersister(session, self._settings)
        self._conversations = ConversationService(session)

    async def handle(self, body: Any) -> VoiceCommandResponse | VoiceCommandError:
        timeout = self._settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(self._process(body), timeout=timeout)
        except asyncio.TimeoutError:
            _LOGGER.warning("Voice command timed out after %.1fs", timeout)
            return VoiceCommandError(error=f"Request timed out after {timeout:g} seconds", timestamp=utcnow())
        except CortexError as exc:
            _LOGGER.warning("Voice command failed (%s): %s", type(exc).__name__, exc)
            return VoiceCommandError(error=str(exc), timestamp=utcnow())
        except Exception:
            _LOGGER.exception("Unexpected error while processing voice command")
            return VoiceCommandError(error=UNEXPECTED_ERROR_MESSAGE, timestamp=utcnow())

    async def _process(self, body: Any) -> VoiceCommandResponse:
        request = self.validate(body)
        conversation = await self._resolve_conversation(request)

        profile, query_vector = await self._gather_profile_and_embedding(request)

        if request.conversation_history is not None:
            history = [PromptMessage(role=turn.role, content=turn.content) for turn in request.conversation_history]
        elif conversation is not None:
            stored = await self._conversations.recent_messages(conversation.id, self._settings.history_window)
            history = [PromptMessage(role=message.role, content=message.content) for message in stored]  # type: ignore[arg-type]
        else:
            history = []

        retrieved = await self._retriever.retrieve(query_vector, request.user_id)
        _LOGGER.debug("Retrieved %d context items for user %s", len(retrieved), request.user_id)

        messages = self._composer.compose(profile, retrieved, history, request.message)
        reply = await self._completions.complete(messages)
        reply_vector = await self._embed_reply(reply)

        if conversation is None:
            conversation = await self._conversations.create_conversation(
                request.user_id, make_conversation_title(request.message)
            )
        await self._persister.persist(
            conversation.id, MessageRole.USER, request.message, request.is_voice, query_vector
        )
        await self._persister.persist(conversation.id, MessageRole.ASSISTANT, reply, False, reply_vector)

        embeddings = None
        if self._settings.return_embeddings:
            embeddings = ExchangeEmbeddings(user_message=query_vector, assistant_response=reply_vector)
        return VoiceCommandResponse(
            response=reply,
            timestamp=utcnow(),
            conversation_id=conversation.id,
            embeddings=embeddings,
        )

    def validate(self, body: Any) -> VoiceCommandRequest:
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        message = body.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Invalid message provided")
        if len(message) > self._settings.max_message_chars:
            raise ValidationError(
                f"Message exceeds the maximum length of {self._settings.max_message_chars} characters"
            )
        user_id = body.get("userId")
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("A userId is required")
        try:
            return VoiceCommandRequest.model_validate(body)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid request field {location}: {first.get('msg')}") from exc

    async def _resolve_conversation(self, request: VoiceCommandRequest) -> Optional[Conversation]:
        if request.conversation_id is None:
            return None
        conversation = await self._conversations.get_owned_conversation(request.conversation_id, request.user_id)
        if conversation is None:
            raise ValidationError("Conversation not found")
        return conversation

    async def _gather_profile_and_embedding(self, request: VoiceCommandRequest):
        profile, vector = await asyncio.gather(
            self._profiles.load_profile(request.user_id),
            self._embeddings.embed(request.message),
            return_exceptions=True,
        )
        for outcome in (vector, profile):
            if isinstance(outcome, BaseException):
                raise outcome
        return profile, vector

    async def _embed_reply(self, reply: str) -> Optional[list[float]]:
        try:
            return await self._embeddings.embed(reply)
        except UpstreamError as exc:
            _LOGGER.warning("Reply embedding failed; storing reply without a vector: %s", exc)
            return None
