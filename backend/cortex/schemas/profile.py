"""Pydantic schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileResource(BaseModel):
    id: str
    nickname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    height: Optional[float] = None
    height_unit: Optional[str] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    nickname: Optional[str] = Field(default=None, max_length=100)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = Field(default=None, max_length=50)
    height: Optional[float] = Field(default=None, gt=0)
    height_unit: Optional[str] = Field(default=None, max_length=10)
    weight: Optional[float] = Field(default=None, gt=0)
    weight_unit: Optional[str] = Field(default=None, max_length=10)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar_url: Optional[str] = Field(default=None, max_length=2048)
