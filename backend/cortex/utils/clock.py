"""Timestamp helpers.

Functions:
    utcnow(): Current time as a timezone-aware UTC datetime.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
