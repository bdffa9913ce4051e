"""Grind session endpoints: record finished sessions and read them back."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from grind.auth.dependencies import get_current_user
from grind.config import get_settings
from grind.database import get_session
from grind.db.models import Profile
from grind.rooms.errors import NotAMember
from grind.rooms.service import is_member
from grind.sessions.schemas import (
    CreateSessionRequest,
    Session,
    SessionListResponse,
    SessionResponse,
    UserStatsResponse,
)
from grind.sessions.service import create_session, get_user_sessions, get_user_stats

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session_endpoint(
    body: CreateSessionRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SessionResponse:
    """Record a finished session, optionally tagged to a room the caller belongs to."""
    if body.room_id is not None and not await is_member(db, user.id, body.room_id):
        raise NotAMember

    session = await create_session(
        db,
        user.id,
        started_at=body.started_at,
        ended_at=body.ended_at,
        duration_seconds=body.duration_seconds,
        room_id=body.room_id,
    )
    await db.commit()
    return SessionResponse(session=Session.model_validate(session))


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    limit: int | None = Query(None, gt=0),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SessionListResponse:
    """The caller's sessions, newest first."""
    if start_date is not None and end_date is not None and start_date >= end_date:
        raise HTTPException(status_code=400, detail="Start date must be before end date")

    sessions = await get_user_sessions(
        db,
        user.id,
        limit=limit or get_settings().sessions_default_limit,
        start_date=start_date,
        end_date=end_date,
    )
    return SessionListResponse(sessions=[Session.model_validate(s) for s in sessions])


@router.get("/stats", response_model=UserStatsResponse)
async def my_stats(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserStatsResponse:
    """Totals, streaks and top room for the caller."""
    stats = await get_user_stats(db, user.id)
    return UserStatsResponse(stats=stats)
