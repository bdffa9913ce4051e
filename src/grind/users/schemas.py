"""Pydantic schemas for user profiles."""

from __future__ import annotations

import uuid
from datetime import datetime

from grind.db.models import Profile
from grind.schemas import CamelModel


class User(CamelModel):
    id: uuid.UUID
    display_name: str
    avatar_url: str | None = None
    created_at: datetime


def profile_to_user(profile: Profile) -> User:
    """Map a profile row to the public user shape."""
    return User(
        id=profile.id,
        display_name=profile.display_name,
        avatar_url=profile.avatar_url,
        created_at=profile.created_at,
    )
