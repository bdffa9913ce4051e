"""Pydantic schemas for grind session endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field, model_validator

from grind.schemas import CamelModel


class CreateSessionRequest(CamelModel):
    started_at: datetime
    ended_at: datetime
    duration_seconds: int = Field(..., gt=0)
    room_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _check_range(self) -> CreateSessionRequest:
        if self.started_at >= self.ended_at:
            msg = "Start date must be before end date"
            raise ValueError(msg)
        return self


class Session(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    room_id: uuid.UUID | None = None
    started_at: datetime
    ended_at: datetime | None = None
    duration_seconds: int
    created_at: datetime


class TopRoom(CamelModel):
    room_id: uuid.UUID
    room_name: str
    total_seconds: int


class UserStats(CamelModel):
    total_sessions: int = 0
    total_seconds: int = 0
    total_time: str = "0s"
    today_seconds: int = 0
    week_seconds: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    top_room: TopRoom | None = None


class SessionResponse(CamelModel):
    session: Session


class SessionListResponse(CamelModel):
    sessions: list[Session]


class UserStatsResponse(CamelModel):
    stats: UserStats
