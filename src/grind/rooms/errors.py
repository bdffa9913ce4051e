"""Typed failures raised by the room and leaderboard services.

Each error carries the HTTP status it maps to, so the API layer can translate
it without string matching.
"""

from __future__ import annotations


class RoomsError(Exception):
    """Base class for room lifecycle failures."""

    status_code: int = 500
    message: str = "Room operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.detail = message or self.message


class RoomNotFound(RoomsError):
    status_code = 404
    message = "Room not found"


class NotAMember(RoomsError):
    status_code = 403
    message = "User is not a member of this room"


class AlreadyMember(RoomsError):
    status_code = 400
    message = "User is already a member of this room"


class OwnerCannotLeaveWithMembers(RoomsError):
    status_code = 400
    message = "Room owner cannot leave while other members exist"


class StorageError(RoomsError):
    """The store rejected or failed a read or write."""

    status_code = 500
    message = "Storage operation failed"


class RoomCreationFailed(StorageError):
    message = "Failed to create room"


class MembershipCreationFailed(StorageError):
    """The room row was written but the owner membership was not."""

    message = "Failed to create owner membership"
