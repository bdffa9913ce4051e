"""Grind rooms: focus sessions, shared rooms and leaderboards."""
