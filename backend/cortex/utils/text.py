"""Text normalisation helpers."""

from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_TITLE_MAX_CHARS = 50


def collapse_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces."""

    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def make_conversation_title(content: str, *, max_chars: int = _TITLE_MAX_CHARS) -> str:
    """Derive a short conversation title from the first user message.

    The first *max_chars* characters are kept with whitespace collapsed; an ellipsis marks
    titles that were cut short.
    """

    stripped = content.strip()
    title = collapse_whitespace(stripped[:max_chars])
    if len(stripped) > max_chars:
        return f"{title}..."
    return title
