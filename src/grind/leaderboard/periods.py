"""Leaderboard period windows.

Windows are rolling, not calendar-aligned, except ``day`` which starts at
UTC midnight.
"""

from __future__ import annotations

import enum
from datetime import datetime, time, timedelta, timezone

ALL_TIME_FLOOR = datetime(2000, 1, 1, tzinfo=timezone.utc)


class LeaderboardPeriod(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL_TIME = "all-time"


def parse_period(value: str | LeaderboardPeriod | None) -> LeaderboardPeriod:
    """Map a raw period string to a LeaderboardPeriod. Unknown values fall back to week."""
    if isinstance(value, LeaderboardPeriod):
        return value
    try:
        return LeaderboardPeriod(value)
    except ValueError:
        return LeaderboardPeriod.WEEK


def get_period_range(
    period: str | LeaderboardPeriod,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """Get (start, end) for a period, both inclusive. end is always now."""
    if now is None:
        now = datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)

    resolved = parse_period(period)
    if resolved is LeaderboardPeriod.DAY:
        start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    elif resolved is LeaderboardPeriod.MONTH:
        start = now - timedelta(days=30)
    elif resolved is LeaderboardPeriod.ALL_TIME:
        start = ALL_TIME_FLOOR
    else:
        start = now - timedelta(days=7)
    return start, now
