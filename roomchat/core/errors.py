"""Error taxonomy shared by the auth core and the room domain.

Every failure that can reach a client is a ``RoomchatError`` subclass with a stable
``code``, an HTTP ``status`` and a user-facing ``message``. The Flask error handler
registered in ``create_app`` renders them as ``{"ok": false, "error": code, "message": ...}``.
"""

from __future__ import annotations

from typing import Optional


class RoomchatError(Exception):
    code = "error"
    status = 400
    message = "request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.code, "message": self.message}


class InvalidCredentials(RoomchatError):
    code = "invalid_credentials"
    status = 400
    message = "invalid credentials"


class InvalidLoginLink(RoomchatError):
    code = "invalid_login_link"
    status = 400
    message = "login link is invalid or expired"


class Unauthenticated(RoomchatError):
    code = "unauthenticated"
    status = 401
    message = "token is invalid"


class Forbidden(RoomchatError):
    code = "forbidden"
    status = 403
    message = "user not authorized"


class NotFound(RoomchatError):
    code = "not_found"
    status = 404
    message = "record not found"


class RoomNotFound(NotFound):
    code = "room_not_found"
    message = "room does not exist"


class UserNotFound(NotFound):
    code = "user_not_found"
    message = "user does not exist"


class NotMember(NotFound):
    code = "not_member"
    message = "user not in room"


class NotInRoom(NotFound):
    code = "not_in_room"
    message = "user not in room"


class Conflict(RoomchatError):
    code = "conflict"
    status = 409
    message = "record already exists"


class AlreadyMember(Conflict):
    code = "already_member"
    message = "user already in room"


class UpdateFailed(RoomchatError):
    code = "update_failed"
    status = 422
    message = "failed to update username"


class StorageFailure(RoomchatError):
    """Collaborator I/O failure; the underlying cause is logged, never rendered."""

    code = "storage_failure"
    status = 500
    message = "storage failure"


__all__ = [
    "RoomchatError",
    "InvalidCredentials",
    "InvalidLoginLink",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "RoomNotFound",
    "UserNotFound",
    "NotMember",
    "NotInRoom",
    "Conflict",
    "AlreadyMember",
    "UpdateFailed",
    "StorageFailure",
]
