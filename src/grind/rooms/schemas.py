"""Pydantic schemas for room endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from grind.db.models import MembershipRole
from grind.schemas import CamelModel
from grind.users.schemas import User


# --- Requests ---


class CreateRoomRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)


# --- Domain shapes ---


class Room(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime


class RoomMemberWithProfile(CamelModel):
    user_id: uuid.UUID
    role: MembershipRole
    joined_at: datetime
    profile: User


class RoomStats(CamelModel):
    total_hours: float = 0.0
    total_sessions: int = 0
    active_today: int = 0
    avg_hours_per_member: float = 0.0


class RoomPreview(Room):
    """What a non-member sees through an invite link."""

    member_count: int


class RoomWithDetails(Room):
    members: list[RoomMemberWithProfile] = []
    member_count: int
    role: MembershipRole
    joined_at: datetime
    stats: RoomStats


# --- Responses ---


class RoomResponse(CamelModel):
    room: Room


class RoomDetailsResponse(CamelModel):
    room: RoomWithDetails


class RoomPreviewResponse(CamelModel):
    room: RoomPreview


class RoomListResponse(CamelModel):
    rooms: list[RoomWithDetails]


class RoomMembersResponse(CamelModel):
    members: list[RoomMemberWithProfile]


class MessageResponse(CamelModel):
    message: str
