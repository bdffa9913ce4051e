"""User router: /api/v1/users/* endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from grind.auth.dependencies import get_current_user
from grind.database import get_session
from grind.db.models import Profile
from grind.users.schemas import User, profile_to_user
from grind.users.service import get_profile_by_id

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=User)
async def get_me(user: Profile = Depends(get_current_user)) -> User:
    """Return the caller's profile."""
    return profile_to_user(user)


@router.get("/{user_id}", response_model=User)
async def get_user(
    user_id: uuid.UUID,
    _caller: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Public profile of another user."""
    profile = await get_profile_by_id(db, user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return profile_to_user(profile)
