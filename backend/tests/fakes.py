"""Test doubles for the OpenAI-backed pipeline clients."""

import asyncio
from collections.abc import Iterable

from cortex.core.errors import UpstreamError
from cortex.services.prompting import PromptMessage


class FakeEmbeddingClient:
    """Deterministic stand-in for the OpenAI embeddings endpoint."""

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        default: list[float] | None = None,
        fail_on: Iterable[str] = (),
    ) -> None:
        self.vectors = dict(vectors or {})
        self.default = default or [1.0, 0.0, 0.0]
        self.fail_on = set(fail_on)
        self.calls: list[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise UpstreamError("OpenAI API error: 503 - embeddings unavailable", status_code=503)
        return list(self.vectors.get(text, self.default))


class FakeCompletionClient:
    def __init__(
        self,
        reply: str = "You have a team sync at 10am.",
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[list[PromptMessage]] = []

    @property
    def is_configured(self) -> bool:
        return True

    async def complete(self, messages) -> str:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


