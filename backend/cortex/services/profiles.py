"""Profile access for personalisation.

Classes:
    ProfileLoader: Read-only lookup used by the assistant pipeline.
    ProfileService: Read and partially update a user's profile.
"""

from __future__ import annotations

from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.models import Profile
from cortex.schemas import ProfileUpdateRequest
from cortex.utils.clock import utcnow


class ProfileLoader:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_profile(self, user_id: str) -> Optional[Profile]:
        return await self._session.get(Profile, user_id)


class ProfileService:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        return await self._session.get(Profile, user_id)

    async def update_profile(self, user_id: str, payload: ProfileUpdateRequest) -> Profile:
        """Apply the fields explicitly set in *payload*, creating the profile row if needed."""

        profile = await self._session.get(Profile, user_id)
        if profile is None:
            profile = Profile(id=user_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if isinstance(value, str):
                value = value.strip() or None
            setattr(profile, field, value)
        profile.updated_at = utcnow()
        self._session.add(profile)
        await self._session.commit()
        await self._session.refresh(profile)
        return profile
