"""Pydantic schemas for leaderboard endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from grind.leaderboard.periods import LeaderboardPeriod
from grind.schemas import CamelModel
from grind.users.schemas import User


class LeaderboardEntry(CamelModel):
    user_id: uuid.UUID
    user: User
    room_id: uuid.UUID
    total_seconds: int
    last_active_at: datetime
    streak_days: int = 0  # not computed; no streak rule has been agreed for rooms
    rank: int = 0


class LeaderboardResponse(CamelModel):
    entries: list[LeaderboardEntry]
    period: LeaderboardPeriod
