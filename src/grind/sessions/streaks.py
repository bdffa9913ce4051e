"""Calendar helpers over grind sessions.

All day boundaries are UTC. Weeks start on Monday (ISO).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol


class _Timed(Protocol):
    started_at: datetime
    duration_seconds: int


def _utc_date(dt: datetime) -> date:
    return dt.astimezone(timezone.utc).date()


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = _utc_date(dt) if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def get_day_boundaries(dt: datetime) -> tuple[datetime, datetime]:
    """Get (00:00 UTC, next 00:00 UTC) for the day containing dt."""
    start = datetime.combine(_utc_date(dt), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def get_week_boundaries(dt: datetime) -> tuple[datetime, datetime]:
    """Get (Monday 00:00 UTC, next Monday 00:00 UTC) for the ISO week containing dt."""
    start = datetime.combine(get_monday(dt), time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=7)


def _total_between(sessions: Iterable[_Timed], start: datetime, end: datetime) -> int:
    return sum(s.duration_seconds for s in sessions if start <= s.started_at < end)


def calculate_day_total(sessions: Iterable[_Timed], day: datetime | None = None) -> int:
    """Seconds of sessions started on the given UTC day (default today)."""
    if day is None:
        day = datetime.now(timezone.utc)
    return _total_between(sessions, *get_day_boundaries(day))


def calculate_week_total(sessions: Iterable[_Timed], week_of: datetime | None = None) -> int:
    """Seconds of sessions started in the Monday-Sunday week containing week_of."""
    if week_of is None:
        week_of = datetime.now(timezone.utc)
    return _total_between(sessions, *get_week_boundaries(week_of))


def calculate_streak(sessions: Sequence[_Timed], today: datetime | None = None) -> int:
    """Consecutive days with at least one session, counting back from today.

    A day without sessions today means no current streak.
    """
    if not sessions:
        return 0
    if today is None:
        today = datetime.now(timezone.utc)

    active_days = {_utc_date(s.started_at) for s in sessions}
    streak = 0
    cursor = _utc_date(today)
    while cursor in active_days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calculate_longest_streak(sessions: Sequence[_Timed]) -> int:
    """Longest run of consecutive UTC days with at least one session."""
    if not sessions:
        return 0

    days = sorted({_utc_date(s.started_at) for s in sessions})
    longest = current = 1
    for prev, curr in zip(days, days[1:]):
        if (curr - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def format_duration(seconds: int) -> str:
    """Human-readable duration: '45s', '5m', '2h', '2h 34m'."""
    if seconds < 60:
        return f"{seconds}s"

    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    return f"{minutes}m"
