"""Resource authorization for room mutations.

All room and message operations route through ``RoomPolicy``; no handler compares
owners or memberships on its own. Rules:

    create_room       any authenticated identity (creator is not auto-joined)
    join_room         user and room exist, not already a member
    leave_room        caller is a member
    post_message      caller is a member
    read_messages     caller is a member
    update_room       caller owns the room
    delete_room       caller owns the room
    update_username   caller is the member being renamed, and is a member
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.errors import (
    AlreadyMember,
    Forbidden,
    NotInRoom,
    NotMember,
    RoomchatError,
    RoomNotFound,
    UserNotFound,
)
from roomchat.core.users.models import User
from roomchat.domains.rooms.models.room_models import Room
from roomchat.extensions import db

if TYPE_CHECKING:
    from roomchat.domains.rooms.services.membership_ledger import MembershipLedger

CREATE_ROOM = "create_room"
JOIN_ROOM = "join_room"
LEAVE_ROOM = "leave_room"
POST_MESSAGE = "post_message"
READ_MESSAGES = "read_messages"
UPDATE_ROOM = "update_room"
DELETE_ROOM = "delete_room"
UPDATE_USERNAME = "update_username"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    error: Optional[RoomchatError] = None

    @classmethod
    def permit(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: RoomchatError) -> "Decision":
        return cls(allowed=False, error=error)

    def raise_for_denial(self) -> None:
        if not self.allowed and self.error is not None:
            raise self.error


class RoomPolicy:
    def __init__(self, ledger: Optional[MembershipLedger] = None, session=None):
        from roomchat.domains.rooms.services.membership_ledger import MembershipLedger  # local import to avoid circulars

        self._session = session or db.session
        self.ledger = ledger or MembershipLedger(self._session)
        self._rules: Dict[str, Callable[..., Decision]] = {
            CREATE_ROOM: self._any_identity,
            JOIN_ROOM: self._can_join,
            LEAVE_ROOM: self._is_member,
            POST_MESSAGE: self._in_room,
            READ_MESSAGES: self._in_room,
            UPDATE_ROOM: self._is_owner,
            DELETE_ROOM: self._is_owner,
            UPDATE_USERNAME: self._is_self_member,
        }

    def authorize(
        self,
        action: str,
        identity: VerifiedIdentity,
        room_id: Optional[int] = None,
        target_user_id: Optional[int] = None,
    ) -> Decision:
        rule = self._rules.get(action)
        if rule is None:
            raise ValueError(f"unknown action: {action}")
        return rule(identity, room_id, target_user_id)

    def require(
        self,
        action: str,
        identity: VerifiedIdentity,
        room_id: Optional[int] = None,
        target_user_id: Optional[int] = None,
    ) -> None:
        self.authorize(action, identity, room_id, target_user_id).raise_for_denial()

    # --- rules ---

    def _any_identity(self, identity, room_id, target_user_id) -> Decision:
        return Decision.permit()

    def _can_join(self, identity, room_id, target_user_id) -> Decision:
        if self._session.get(User, identity.user_id) is None:
            return Decision.deny(UserNotFound())
        if self._session.get(Room, room_id) is None:
            return Decision.deny(RoomNotFound())
        if self.ledger.is_member(room_id, identity.user_id):
            return Decision.deny(AlreadyMember())
        return Decision.permit()

    def _is_member(self, identity, room_id, target_user_id) -> Decision:
        if not self.ledger.is_member(room_id, identity.user_id):
            return Decision.deny(NotMember())
        return Decision.permit()

    def _in_room(self, identity, room_id, target_user_id) -> Decision:
        if not self.ledger.is_member(room_id, identity.user_id):
            return Decision.deny(NotInRoom())
        return Decision.permit()

    def _is_owner(self, identity, room_id, target_user_id) -> Decision:
        room = self._session.get(Room, room_id)
        if room is None:
            return Decision.deny(RoomNotFound())
        if room.owner_id != identity.user_id:
            return Decision.deny(Forbidden())
        return Decision.permit()

    def _is_self_member(self, identity, room_id, target_user_id) -> Decision:
        if target_user_id is not None and target_user_id != identity.user_id:
            return Decision.deny(Forbidden())
        return self._is_member(identity, room_id, target_user_id)


__all__ = [
    "Decision",
    "RoomPolicy",
    "CREATE_ROOM",
    "JOIN_ROOM",
    "LEAVE_ROOM",
    "POST_MESSAGE",
    "READ_MESSAGES",
    "UPDATE_ROOM",
    "DELETE_ROOM",
    "UPDATE_USERNAME",
]
