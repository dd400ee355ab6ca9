"""Profile endpoints used to manage personalisation attributes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from cortex.db.session import get_session
from cortex.models import Profile
from cortex.schemas import ProfileResource, ProfileUpdateRequest
from cortex.services.profiles import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _to_profile_resource(profile: Profile) -> ProfileResource:
    return ProfileResource.model_validate(profile.model_dump())


@router.get("/{user_id}", response_model=ProfileResource)
async def get_profile(user_id: str, session: AsyncSession = Depends(get_session)) -> ProfileResource:
    profile = await ProfileService(session).get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return _to_profile_resource(profile)


@router.patch("/{user_id}", response_model=ProfileResource)
async def update_profile(
    user_id: str,
    payload: ProfileUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> ProfileResource:
    profile = await ProfileService(session).update_profile(user_id, payload)
    return _to_profile_resource(profile)
