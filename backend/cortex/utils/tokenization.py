"""Utility helpers for counting tokens across models."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import tiktoken

_DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=64)
def _encoding_for_model(model: Optional[str]) -> tiktoken.Encoding:
    if not model:
        return tiktoken.get_encoding(_DEFAULT_ENCODING)
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding(_DEFAULT_ENCODING)


def count_tokens(text: str | None, model: Optional[str] = None) -> int:
    """Return the token count for *text* under the given *model*."""

    if not text:
        return 0
    return len(_encoding_for_model(model).encode(text))


def fits_token_budget(text: str, budget: int, model: Optional[str] = None) -> bool:
    """Return True when *text* encodes to at most *budget* tokens.

    Every BPE token covers at least one byte, so short texts are accepted without loading
    an encoding.
    """

    if len(text.encode("utf-8")) <= budget:
        return True
    return count_tokens(text, model) <= budget
