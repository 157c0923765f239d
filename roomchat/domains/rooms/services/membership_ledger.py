"""Membership ledger: who belongs to which room, under which room-local name."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.exc import IntegrityError

from roomchat.core.errors import AlreadyMember, NotMember, RoomNotFound, UpdateFailed, UserNotFound
from roomchat.core.users.models import User
from roomchat.domains.rooms.models.room_models import Membership, Room
from roomchat.extensions import db

logger = logging.getLogger(__name__)


class MembershipLedger:
    """Row-level operations on ``room_membership``. Callers own the commit."""

    def __init__(self, session=None):
        self._session = session or db.session

    def _query(self, room_id: int, user_id: int):
        return self._session.query(Membership).filter_by(room_id=room_id, user_id=user_id)

    def add(self, room_id: int, user_id: int, username: str) -> Membership:
        # Existence checks come first so callers get the precise error kind.
        if self._session.get(User, user_id) is None:
            raise UserNotFound()
        if self._session.get(Room, room_id) is None:
            raise RoomNotFound()
        # Advisory only; the composite primary key settles concurrent joins below.
        if self.is_member(room_id, user_id):
            raise AlreadyMember()

        membership = Membership(room_id=room_id, user_id=user_id, username=username)
        self._session.add(membership)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            logger.info("concurrent join lost room_id=%s user_id=%s", room_id, user_id)
            raise AlreadyMember() from exc
        return membership

    def remove(self, room_id: int, user_id: int) -> None:
        if not self.is_member(room_id, user_id):
            raise NotMember()
        deleted = self._query(room_id, user_id).delete(synchronize_session="evaluate")
        if deleted == 0:
            raise NotMember()

    def update_username(self, room_id: int, user_id: int, new_username: str) -> None:
        if not self.is_member(room_id, user_id):
            raise NotMember()
        updated = self._query(room_id, user_id).update(
            {"username": new_username}, synchronize_session="evaluate"
        )
        if updated == 0:
            raise UpdateFailed()

    def count(self, room_id: int) -> int:
        return self._session.query(Membership).filter_by(room_id=room_id).count()

    def is_member(self, room_id: int, user_id: int) -> bool:
        return bool(self._session.query(self._query(room_id, user_id).exists()).scalar())

    def get(self, room_id: int, user_id: int) -> Membership | None:
        return self._query(room_id, user_id).one_or_none()

    def list_by_room(self, room_id: int) -> List[Membership]:
        return (
            self._session.query(Membership)
            .filter_by(room_id=room_id)
            .order_by(Membership.created_at, Membership.user_id)
            .all()
        )

    def remove_all(self, room_id: int) -> int:
        """Delete every membership of a room. Only the room delete cascade calls this."""
        return (
            self._session.query(Membership)
            .filter_by(room_id=room_id)
            .delete(synchronize_session="evaluate")
        )


__all__ = ["MembershipLedger"]
