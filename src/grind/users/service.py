"""Profile lookups.

Profiles are written by the auth gateway on sign-up; this service only reads
them, plus a create helper for local development and tests.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from grind.db.models import Profile

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_profile_by_id(db: AsyncSession, user_id: uuid.UUID) -> Profile | None:
    """Fetch a profile by ID."""
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def create_profile(
    db: AsyncSession,
    display_name: str,
    avatar_url: str | None = None,
    user_id: uuid.UUID | None = None,
) -> Profile:
    """Insert a profile row. Mirrors what the gateway does on sign-up."""
    profile = Profile(id=user_id or uuid.uuid4(), display_name=display_name, avatar_url=avatar_url)
    db.add(profile)
    await db.flush()
    logger.info("profile_created", user_id=str(profile.id))
    return profile
