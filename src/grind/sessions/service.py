"""Grind session persistence and per-user statistics.

Sessions are produced by the client timer once finished; this module only
records and reads them.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grind.db.models import GrindSession, Room
from grind.rooms.errors import StorageError
from grind.sessions.schemas import TopRoom, UserStats
from grind.sessions.streaks import (
    calculate_day_total,
    calculate_longest_streak,
    calculate_streak,
    calculate_week_total,
    format_duration,
)

logger = logging.getLogger(__name__)


async def create_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    started_at: datetime,
    ended_at: datetime,
    duration_seconds: int,
    room_id: uuid.UUID | None = None,
) -> GrindSession:
    """Record a finished session for user_id."""
    session = GrindSession(
        user_id=user_id,
        room_id=room_id,
        started_at=started_at,
        ended_at=ended_at,
        duration_seconds=duration_seconds,
    )
    db.add(session)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.error("Session insert failed for user %s", user_id, exc_info=True)
        raise StorageError("Failed to create session") from exc

    logger.info("Session recorded: user=%s room=%s duration=%ds", user_id, room_id, duration_seconds)
    return session


async def get_user_sessions(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 10,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[GrindSession]:
    """A user's sessions, newest first, optionally bounded by started_at (inclusive)."""
    stmt = select(GrindSession).where(GrindSession.user_id == user_id)
    if start_date is not None:
        stmt = stmt.where(GrindSession.started_at >= start_date)
    if end_date is not None:
        stmt = stmt.where(GrindSession.started_at <= end_date)
    stmt = stmt.order_by(GrindSession.started_at.desc()).limit(limit)

    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error("Failed to fetch sessions for user %s", user_id, exc_info=True)
        raise StorageError("Failed to fetch sessions") from exc
    return list(result.scalars().all())


async def get_user_stats(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> UserStats:
    """Totals, streaks and the room the user has put the most time into."""
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        result = await db.execute(
            select(GrindSession).where(GrindSession.user_id == user_id)
        )
        sessions = list(result.scalars().all())

        top_result = await db.execute(
            select(Room.id, Room.name, func.sum(GrindSession.duration_seconds).label("total"))
            .join(Room, GrindSession.room_id == Room.id)
            .where(GrindSession.user_id == user_id)
            .group_by(Room.id, Room.name)
            .order_by(func.sum(GrindSession.duration_seconds).desc())
            .limit(1)
        )
        top = top_result.first()
    except SQLAlchemyError as exc:
        logger.error("Failed to compute stats for user %s", user_id, exc_info=True)
        raise StorageError("Failed to compute user stats") from exc

    total_seconds = sum(s.duration_seconds for s in sessions)
    return UserStats(
        total_sessions=len(sessions),
        total_seconds=total_seconds,
        total_time=format_duration(total_seconds),
        today_seconds=calculate_day_total(sessions, now),
        week_seconds=calculate_week_total(sessions, now),
        current_streak=calculate_streak(sessions, now),
        longest_streak=calculate_longest_streak(sessions),
        top_room=TopRoom(room_id=top.id, room_name=top.name, total_seconds=int(top.total)) if top else None,
    )
