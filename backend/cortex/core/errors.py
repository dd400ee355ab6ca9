"""Error taxonomy shared by the assistant pipeline.

Classes:
    CortexError: Base class for failures that are reported to callers as an error envelope.
    ValidationError: Bad or missing request input; raised before any upstream call.
    UpstreamError: The embedding or completion API failed or returned an unusable payload.
    ConfigurationError: Required credentials or settings are missing.
"""

from __future__ import annotations

from typing import Optional


class CortexError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(CortexError):
    pass


class UpstreamError(CortexError):
    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(CortexError):
    pass
