"""Room API endpoints: lifecycle, members and leaderboard.

Request shape is validated here; the services trust their input. Domain
errors propagate to the RoomsError handler in ``grind.middleware.error_handler``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from grind.auth.dependencies import get_current_user
from grind.config import get_settings
from grind.database import get_session
from grind.db.models import Profile
from grind.leaderboard.periods import LeaderboardPeriod, parse_period
from grind.leaderboard.schemas import LeaderboardResponse
from grind.leaderboard.service import compute_leaderboard
from grind.rooms.errors import NotAMember, RoomNotFound
from grind.rooms.schemas import (
    CreateRoomRequest,
    MessageResponse,
    Room,
    RoomDetailsResponse,
    RoomListResponse,
    RoomMembersResponse,
    RoomPreviewResponse,
    RoomResponse,
)
from grind.rooms.service import (
    create_room,
    get_basic_room_info,
    get_room,
    get_room_details,
    get_room_members,
    get_user_rooms,
    is_member,
    join_room,
    leave_room,
)

router = APIRouter(prefix="/api/v1/rooms", tags=["Rooms"])


async def _require_member(db: AsyncSession, room_id: uuid.UUID, user_id: uuid.UUID) -> None:
    """Raise RoomNotFound / NotAMember unless user_id belongs to an existing room."""
    if await get_room(db, room_id) is None:
        raise RoomNotFound
    if not await is_member(db, user_id, room_id):
        raise NotAMember


@router.post("", response_model=RoomResponse, status_code=201)
async def create_room_endpoint(
    body: CreateRoomRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RoomResponse:
    """Create a room. The creator becomes its owner."""
    room = await create_room(db, user.id, body.name, body.description)
    await db.commit()
    return RoomResponse(room=Room.model_validate(room))


@router.get("", response_model=RoomListResponse)
async def list_my_rooms(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RoomListResponse:
    """Rooms the caller belongs to, with members and stats."""
    rooms = await get_user_rooms(db, user.id)
    return RoomListResponse(rooms=rooms)


@router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_endpoint(
    room_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RoomDetailsResponse:
    """Room details (members only)."""
    room = await get_room_details(db, room_id, user.id)
    return RoomDetailsResponse(room=room)


@router.get("/{room_id}/preview", response_model=RoomPreviewResponse)
async def preview_room(
    room_id: uuid.UUID,
    _user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RoomPreviewResponse:
    """Invite-link preview: name, description and member count. No membership needed."""
    room = await get_basic_room_info(db, room_id)
    return RoomPreviewResponse(room=room)


@router.post("/{room_id}/join", response_model=MessageResponse)
async def join_room_endpoint(
    room_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Join a room as a member."""
    await join_room(db, user.id, room_id)
    await db.commit()
    return MessageResponse(message="Successfully joined room")


@router.delete("/{room_id}/leave", response_model=MessageResponse)
async def leave_room_endpoint(
    room_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Leave a room. The owner can only leave as the last member, which deletes the room."""
    await leave_room(db, user.id, room_id)
    await db.commit()
    return MessageResponse(message="Successfully left room")


@router.get("/{room_id}/members", response_model=RoomMembersResponse)
async def list_room_members(
    room_id: uuid.UUID,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> RoomMembersResponse:
    """Members of a room, oldest first (members only)."""
    await _require_member(db, room_id, user.id)
    members = await get_room_members(db, room_id)
    return RoomMembersResponse(members=members)


@router.get("/{room_id}/leaderboard", response_model=LeaderboardResponse)
async def get_room_leaderboard(
    room_id: uuid.UUID,
    period: LeaderboardPeriod | None = Query(None),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> LeaderboardResponse:
    """Ranked grind time for the room over a period (members only)."""
    await _require_member(db, room_id, user.id)
    resolved = period or parse_period(get_settings().leaderboard_default_period)
    entries = await compute_leaderboard(db, room_id, resolved)
    return LeaderboardResponse(entries=entries, period=resolved)
