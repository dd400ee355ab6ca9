"""User profile ORM model.

Classes:
    Profile: Personalisation attributes keyed by the platform user id.

Functions:
    set_updated_at(_, __, target): SQLAlchemy event hook that maintains the `updated_at` timestamp.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Text, event
from sqlmodel import Field, SQLModel

from cortex.utils.clock import utcnow


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(primary_key=True)
    nickname: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    height: Optional[float] = None
    height_unit: Optional[str] = None
    weight: Optional[float] = None
    weight_unit: Optional[str] = None
    bio: Optional[str] = Field(default=None, sa_column=Column(Text))
    avatar_url: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


@event.listens_for(Profile, "before_update", propagate=True)
def set_updated_at(_, __, target):
    target.updated_at = utcnow()
