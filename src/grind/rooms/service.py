"""Room membership lifecycle and per-room statistics.

Rules:
- Creating a room makes the creator its owner (room + owner membership are one unit)
- One membership per (room, user); the primary key is the backstop for racing joins
- Non-owners leave by deleting their own membership
- The owner may only leave as the last member, which deletes the room
- No ownership transfer
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, time, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from grind.db.models import GrindSession, MembershipRole, Profile, Room, RoomMembership
from grind.rooms.errors import (
    AlreadyMember,
    MembershipCreationFailed,
    NotAMember,
    OwnerCannotLeaveWithMembers,
    RoomCreationFailed,
    RoomNotFound,
    StorageError,
)
from grind.rooms.schemas import RoomMemberWithProfile, RoomPreview, RoomStats, RoomWithDetails
from grind.users.schemas import profile_to_user

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Re-raise driver failures as StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store failure while trying to %s", action, exc_info=True)
        raise StorageError(f"Failed to {action}") from exc


def start_of_day(now: datetime) -> datetime:
    """UTC midnight of the day containing now."""
    return datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_room(db: AsyncSession, room_id: uuid.UUID, *, for_update: bool = False) -> Room | None:
    """Get a room by ID, optionally taking a row lock for the rest of the transaction."""
    stmt = select(Room).where(Room.id == room_id)
    if for_update:
        stmt = stmt.with_for_update()
    with _store_errors("fetch room"):
        result = await db.execute(stmt)
        return result.scalar_one_or_none()


async def get_membership(
    db: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID
) -> RoomMembership | None:
    """Get a user's membership in a room (if any)."""
    with _store_errors("fetch membership"):
        result = await db.execute(
            select(RoomMembership).where(
                RoomMembership.room_id == room_id,
                RoomMembership.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()


async def is_member(db: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID) -> bool:
    """True iff a membership row exists for the pair."""
    with _store_errors("check membership"):
        result = await db.execute(
            select(RoomMembership.user_id).where(
                RoomMembership.room_id == room_id,
                RoomMembership.user_id == user_id,
            )
        )
        return result.first() is not None


async def count_members(db: AsyncSession, room_id: uuid.UUID) -> int:
    """Number of memberships in a room."""
    with _store_errors("count members"):
        result = await db.execute(
            select(func.count()).select_from(RoomMembership).where(RoomMembership.room_id == room_id)
        )
        return result.scalar_one()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def create_room(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    description: str | None = None,
) -> Room:
    """Create a room owned by user_id. Input is trusted to be validated already.

    Both inserts run in one savepoint: if the owner membership cannot be
    written the room row is rolled back with it and MembershipCreationFailed
    is raised.
    """
    savepoint = await db.begin_nested()

    room = Room(name=name, description=description, created_by=user_id)
    db.add(room)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.error("Room insert failed for user %s", user_id, exc_info=True)
        await savepoint.rollback()
        raise RoomCreationFailed from exc

    membership = RoomMembership(
        room_id=room.id,
        user_id=user_id,
        role=MembershipRole.OWNER,
        joined_at=room.created_at,
    )
    db.add(membership)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.error("Owner membership insert failed for room %s", room.id, exc_info=True)
        await savepoint.rollback()
        raise MembershipCreationFailed from exc

    await savepoint.commit()
    logger.info("Room created: %s (id=%s, owner=%s)", name, room.id, user_id)
    return room


async def join_room(db: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID) -> RoomMembership:
    """Add user_id to a room as a plain member.

    Existence is checked before membership, so a missing room always reports
    RoomNotFound. The room row stays locked until the caller's transaction ends.
    """
    room = await get_room(db, room_id, for_update=True)
    if room is None:
        raise RoomNotFound

    if await is_member(db, user_id, room_id):
        raise AlreadyMember

    membership = RoomMembership(room_id=room_id, user_id=user_id, role=MembershipRole.MEMBER)
    try:
        async with db.begin_nested():
            db.add(membership)
    except IntegrityError as exc:
        # A concurrent join won the primary key; anything else is a store failure.
        if await is_member(db, user_id, room_id):
            raise AlreadyMember from exc
        logger.error("Membership insert failed for room %s", room_id, exc_info=True)
        raise StorageError("Failed to join room") from exc
    except SQLAlchemyError as exc:
        logger.error("Membership insert failed for room %s", room_id, exc_info=True)
        raise StorageError("Failed to join room") from exc

    logger.info("User %s joined room %s", user_id, room_id)
    return membership


async def leave_room(db: AsyncSession, user_id: uuid.UUID, room_id: uuid.UUID) -> None:
    """Remove user_id from a room; the sole remaining owner deletes the room instead."""
    # Lock first so count + decide + delete cannot interleave with a join.
    room = await get_room(db, room_id, for_update=True)

    membership = await get_membership(db, user_id, room_id)
    if membership is None or room is None:
        raise NotAMember

    with _store_errors("leave room"):
        if membership.role == MembershipRole.OWNER:
            member_count = await count_members(db, room_id)
            if member_count > 1:
                raise OwnerCannotLeaveWithMembers
            # Memberships go with the room (ON DELETE CASCADE).
            await db.delete(room)
            await db.flush()
            logger.info("Owner %s left room %s; room deleted", user_id, room_id)
            return

        await db.delete(membership)
        await db.flush()

    logger.info("User %s left room %s", user_id, room_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_basic_room_info(db: AsyncSession, room_id: uuid.UUID) -> RoomPreview:
    """Room preview for invite links. Does not require membership."""
    room = await get_room(db, room_id)
    if room is None:
        raise RoomNotFound

    member_count = await count_members(db, room_id)
    return RoomPreview(
        id=room.id,
        name=room.name,
        description=room.description,
        created_by=room.created_by,
        created_at=room.created_at,
        member_count=member_count,
    )


async def get_room_members(db: AsyncSession, room_id: uuid.UUID) -> list[RoomMemberWithProfile]:
    """All members of a room with profile data, oldest membership first."""
    with _store_errors("fetch room members"):
        result = await db.execute(
            select(RoomMembership, Profile)
            .join(Profile, RoomMembership.user_id == Profile.id)
            .where(RoomMembership.room_id == room_id)
            .order_by(RoomMembership.joined_at.asc())
        )
        rows = result.all()

    return [
        RoomMemberWithProfile(
            user_id=row.RoomMembership.user_id,
            role=row.RoomMembership.role,
            joined_at=row.RoomMembership.joined_at,
            profile=profile_to_user(row.Profile),
        )
        for row in rows
    ]


def compute_room_stats(
    sessions: Iterable[tuple[uuid.UUID, int, datetime]],
    member_count: int,
    now: datetime | None = None,
) -> RoomStats:
    """Aggregate (user_id, duration_seconds, started_at) rows into RoomStats."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = start_of_day(now)

    total_seconds = 0
    total_sessions = 0
    active_users: set[uuid.UUID] = set()
    for user_id, duration_seconds, started_at in sessions:
        total_seconds += duration_seconds
        total_sessions += 1
        if started_at >= today:
            active_users.add(user_id)

    total_hours = total_seconds / SECONDS_PER_HOUR
    return RoomStats(
        total_hours=total_hours,
        total_sessions=total_sessions,
        active_today=len(active_users),
        avg_hours_per_member=total_hours / member_count if member_count > 0 else 0.0,
    )


async def _get_room_stats(
    db: AsyncSession, room_id: uuid.UUID, now: datetime | None = None
) -> RoomStats:
    """Stats over every session of the room's current members."""
    with _store_errors("compute room stats"):
        member_result = await db.execute(
            select(RoomMembership.user_id).where(RoomMembership.room_id == room_id)
        )
        member_ids = list(member_result.scalars())
        if not member_ids:
            return RoomStats()

        session_result = await db.execute(
            select(GrindSession.user_id, GrindSession.duration_seconds, GrindSession.started_at)
            .where(GrindSession.user_id.in_(member_ids))
        )
        rows = [tuple(row) for row in session_result]

    return compute_room_stats(rows, len(member_ids), now)


async def _build_room_details(
    db: AsyncSession,
    room: Room,
    membership: RoomMembership,
    now: datetime | None = None,
) -> RoomWithDetails:
    members = await get_room_members(db, room.id)
    stats = await _get_room_stats(db, room.id, now)
    return RoomWithDetails(
        id=room.id,
        name=room.name,
        description=room.description,
        created_by=room.created_by,
        created_at=room.created_at,
        members=members,
        member_count=len(members),
        role=membership.role,
        joined_at=membership.joined_at,
        stats=stats,
    )


async def get_user_rooms(
    db: AsyncSession, user_id: uuid.UUID, now: datetime | None = None
) -> list[RoomWithDetails]:
    """Every room the user belongs to, most recently joined first, with members and stats."""
    with _store_errors("fetch user rooms"):
        result = await db.execute(
            select(RoomMembership, Room)
            .join(Room, RoomMembership.room_id == Room.id)
            .where(RoomMembership.user_id == user_id)
            .order_by(RoomMembership.joined_at.desc())
        )
        rows = result.all()

    # One AsyncSession cannot run statements concurrently, so rooms are built in turn.
    return [await _build_room_details(db, row.Room, row.RoomMembership, now) for row in rows]


async def get_room_details(
    db: AsyncSession,
    room_id: uuid.UUID,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> RoomWithDetails:
    """Single room with members and stats. Only members may read it."""
    room = await get_room(db, room_id)
    if room is None:
        raise RoomNotFound

    membership = await get_membership(db, user_id, room_id)
    if membership is None:
        raise NotAMember

    return await _build_room_details(db, room, membership, now)
