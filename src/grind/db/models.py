"""ORM models for profiles, rooms, memberships and grind sessions.

Table and column names match the Alembic migrations in ``alembic/versions``.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grind.db.base import Base, UTCDateTime, utcnow


class MembershipRole(str, enum.Enum):
    """Role of a user inside a room. ``admin`` is reserved and carries no extra rights yet."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class Profile(Base):
    """Maps to the 'profiles' table. Rows are created by the auth gateway."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------------


class Room(Base):
    """A named group whose members share a leaderboard."""

    __tablename__ = "rooms"
    __table_args__ = (Index("idx_rooms_created_by", "created_by"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    memberships: Mapped[list[RoomMembership]] = relationship(
        "RoomMembership",
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class RoomMembership(Base):
    """One row per (room, user). The composite primary key is the uniqueness backstop for joins."""

    __tablename__ = "room_memberships"
    __table_args__ = (
        CheckConstraint("role IN ('owner', 'admin', 'member')", name="room_memberships_role_check"),
        Index("idx_room_memberships_user", "user_id"),
        Index("idx_room_memberships_room", "room_id"),
    )

    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[MembershipRole] = mapped_column(
        Enum(
            MembershipRole,
            native_enum=False,
            create_constraint=False,
            length=16,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=MembershipRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    room: Mapped[Room] = relationship("Room", back_populates="memberships")
    profile: Mapped[Profile] = relationship("Profile")


# ---------------------------------------------------------------------------
# Grind sessions (produced by the client timer, read-only for rooms)
# ---------------------------------------------------------------------------


class GrindSession(Base):
    """A finished unit of focused work, optionally tagged to a room."""

    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("ended_at IS NULL OR ended_at >= started_at", name="sessions_ended_after_started"),
        CheckConstraint("duration_seconds >= 0", name="sessions_duration_non_negative"),
        Index("idx_sessions_user_id", "user_id"),
        Index("idx_sessions_room_id", "room_id"),
        Index("idx_sessions_started_at", "started_at"),
        Index("idx_sessions_user_started", "user_id", "started_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True
    )
    started_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    profile: Mapped[Profile] = relationship("Profile")
