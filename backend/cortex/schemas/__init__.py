"""Convenience exports for API schemas.

Re-exports the pydantic models used across the backend so consumers can import from one module.
"""

from .conversation import (
    ConversationCreateRequest,
    ConversationDetail,
    ConversationResource,
    ConversationSummary,
    ConversationUpdateRequest,
    MessageResource,
)
from .profile import ProfileResource, ProfileUpdateRequest
from .voice import (
    ExchangeEmbeddings,
    HistoryTurn,
    VoiceCommandError,
    VoiceCommandRequest,
    VoiceCommandResponse,
)

__all__ = [
    "ConversationCreateRequest",
    "ConversationDetail",
    "ConversationResource",
    "ConversationSummary",
    "ConversationUpdateRequest",
    "MessageResource",
    "ProfileResource",
    "ProfileUpdateRequest",
    "ExchangeEmbeddings",
    "HistoryTurn",
    "VoiceCommandError",
    "VoiceCommandRequest",
    "VoiceCommandResponse",
]
