"""Async OpenAI client wrappers for the assistant pipeline.

Classes:
    EmbeddingClient: Converts text into a fixed-length embedding vector.
    CompletionClient: Sends a composed prompt to the chat completions endpoint and returns the reply text.

Functions:
    build_openai_client(settings): Construct an AsyncOpenAI client with SDK retries disabled.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from cortex.core.config import Settings, get_settings
from cortex.core.errors import ConfigurationError, UpstreamError
from cortex.services.prompting import PromptMessage

_LOGGER = logging.getLogger(__name__)


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    if not settings.openai_configured:
        raise ConfigurationError("OpenAI API key not configured. Set OPENAI_API_KEY.")
    return AsyncOpenAI(
        api_key=settings.openai_api_key.get_secret_value(),  # type: ignore[union-attr]
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout_seconds,
        max_retries=0,
    )


def _error_detail(exc: APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict):
            body = nested
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return "Unknown error"


class _OpenAIEndpoint:
    def __init__(self, client: Optional[AsyncOpenAI] = None, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self._settings.openai_configured

    def _require_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = build_openai_client(self._settings)
        return self._client

    async def _request(self, call: Callable[..., Awaitable[Any]], payload: dict[str, Any]) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.upstream_max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=20),
            retry=retry_if_exception_type(UpstreamError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await _translate_errors(call, payload)


async def _translate_errors(call: Callable[..., Awaitable[Any]], payload: dict[str, Any]) -> Any:
    try:
        return await call(**payload)
    except APIStatusError as exc:
        raise UpstreamError(
            f"OpenAI API error: {exc.status_code} - {_error_detail(exc)}",
            status_code=exc.status_code,
        ) from exc
    except APITimeoutError as exc:
        raise UpstreamError("OpenAI API request timed out") from exc
    except APIConnectionError as exc:
        raise UpstreamError(f"OpenAI API connection failed: {exc}") from exc


class EmbeddingClient(_OpenAIEndpoint):
    async def embed(self, text: str) -> list[float]:
        client = self._require_client()
        expected_dim = self._settings.embedding_dimensions
        payload = dict(
            model=self._settings.openai_embedding_model,
            input=text,
            encoding_format="float",
        )
        response = await self._request(client.embeddings.create, payload)

        data = getattr(response, "data", None) or []
        if not data:
            raise UpstreamError("Embedding response contained no vectors")
        raw = getattr(data[0], "embedding", None)
        if not isinstance(raw, (list, tuple)):
            raise UpstreamError("Embedding response contained a malformed vector")
        try:
            vector = [float(value) for value in raw]
        except (TypeError, ValueError) as exc:
            raise UpstreamError("Embedding response contained a malformed vector") from exc
        if len(vector) != expected_dim:
            raise UpstreamError(
                f"Embedding dimension mismatch: expected {expected_dim}, received {len(vector)}"
            )
        return vector


class CompletionClient(_OpenAIEndpoint):
    async def complete(self, messages: Sequence[PromptMessage]) -> str:
        client = self._require_client()
        settings = self._settings
        payload = dict(
            model=settings.openai_chat_model,
            messages=[message.as_payload() for message in messages],
            max_tokens=settings.completion_max_tokens,
            temperature=settings.completion_temperature,
            presence_penalty=settings.completion_presence_penalty,
            frequency_penalty=settings.completion_frequency_penalty,
        )
        response = await self._request(client.chat.completions.create, payload)

        choices = getattr(response, "choices", None) or []
        content: str | None = None
        if choices:
            content = getattr(choices[0].message, "content", None)
        if not content or not content.strip():
            raise UpstreamError("No response generated from OpenAI")
        usage = getattr(response, "usage", None)
        if usage is not None:
            _LOGGER.debug("Completion used %s tokens", getattr(usage, "total_tokens", None))
        return content.strip()
