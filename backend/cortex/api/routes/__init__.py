"""Route exports for the API layer."""

from .conversations import router as conversations_router
from .profiles import router as profiles_router
from .voice import router as voice_router

__all__ = ["conversations_router", "profiles_router", "voice_router"]
