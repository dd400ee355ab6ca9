"""API router composition for the backend.

The module assembles individual route groups into a single `api_router` that can be mounted on the app.
"""

from fastapi import APIRouter

from cortex.api.routes import conversations_router, profiles_router, voice_router

api_router = APIRouter()
api_router.include_router(voice_router)
api_router.include_router(conversations_router)
api_router.include_router(profiles_router)

__all__ = ["api_router"]
