"""Room leaderboard: ranks members by grind time within a period window.

Computed on demand from the ``sessions`` table:
1. Resolve the period window
2. Fetch room sessions started inside it, with the owner's profile
3. Aggregate per user (total seconds, most recent start)
4. Sort by total seconds desc, then most recent activity desc
5. Assign dense ranks 1..N
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grind.db.models import GrindSession, Profile
from grind.leaderboard.periods import LeaderboardPeriod, get_period_range
from grind.leaderboard.schemas import LeaderboardEntry
from grind.rooms.errors import StorageError
from grind.users.schemas import profile_to_user

logger = logging.getLogger(__name__)


@dataclass
class SessionRow:
    """The columns of one qualifying session the leaderboard needs."""

    user_id: uuid.UUID
    duration_seconds: int
    started_at: datetime
    profile: Profile


def aggregate_by_user(sessions: Iterable[SessionRow], room_id: uuid.UUID) -> list[LeaderboardEntry]:
    """Group sessions per user into unranked entries."""
    totals: dict[uuid.UUID, int] = {}
    last_active: dict[uuid.UUID, datetime] = {}
    profiles: dict[uuid.UUID, Profile] = {}

    for session in sessions:
        uid = session.user_id
        totals[uid] = totals.get(uid, 0) + session.duration_seconds
        if uid not in last_active or session.started_at > last_active[uid]:
            last_active[uid] = session.started_at
        profiles.setdefault(uid, session.profile)

    return [
        LeaderboardEntry(
            user_id=uid,
            user=profile_to_user(profiles[uid]),
            room_id=room_id,
            total_seconds=total,
            last_active_at=last_active[uid],
            streak_days=0,
        )
        for uid, total in totals.items()
    ]


def sort_entries(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort: total_seconds DESC, last_active_at DESC (more recent wins), user_id ASC."""

    def sort_key(entry: LeaderboardEntry) -> tuple[int, float, str]:
        return (
            -entry.total_seconds,
            -entry.last_active_at.timestamp(),
            str(entry.user_id),
        )

    return sorted(entries, key=sort_key)


def assign_ranks(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Dense 1-based ranks in list order. No shared ranks."""
    return [entry.model_copy(update={"rank": index + 1}) for index, entry in enumerate(entries)]


async def fetch_sessions_in_window(
    db: AsyncSession,
    room_id: uuid.UUID,
    start: datetime,
    end: datetime,
) -> list[SessionRow]:
    """Room sessions whose started_at lies in [start, end], joined with profiles."""
    try:
        result = await db.execute(
            select(GrindSession.user_id, GrindSession.duration_seconds, GrindSession.started_at, Profile)
            .join(Profile, GrindSession.user_id == Profile.id)
            .where(
                GrindSession.room_id == room_id,
                GrindSession.started_at >= start,
                GrindSession.started_at <= end,
            )
        )
    except SQLAlchemyError as exc:
        logger.error("Failed to fetch sessions for leaderboard of room %s", room_id, exc_info=True)
        raise StorageError("Failed to fetch sessions for leaderboard") from exc

    return [
        SessionRow(
            user_id=row.user_id,
            duration_seconds=row.duration_seconds,
            started_at=row.started_at,
            profile=row.Profile,
        )
        for row in result
    ]


async def compute_leaderboard(
    db: AsyncSession,
    room_id: uuid.UUID,
    period: str | LeaderboardPeriod = LeaderboardPeriod.WEEK,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    """Ranked leaderboard for a room. Unknown periods use the week window."""
    start, end = get_period_range(period, now)

    sessions = await fetch_sessions_in_window(db, room_id, start, end)
    if not sessions:
        return []

    entries = aggregate_by_user(sessions, room_id)
    ranked = assign_ranks(sort_entries(entries))
    logger.debug("Leaderboard for room %s (%s): %d entries", room_id, period, len(ranked))
    return ranked
