"""Convenience exports for ORM models.

Surface the SQLModel classes so calling code can import them from a single module.
"""

from .conversation import DEFAULT_CONVERSATION_TITLE, Conversation
from .message import Message, MessageRole
from .profile import Profile

__all__ = [
    "Conversation",
    "DEFAULT_CONVERSATION_TITLE",
    "Message",
    "MessageRole",
    "Profile",
]
