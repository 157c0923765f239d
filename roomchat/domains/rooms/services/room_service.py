"""Room service layer."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.errors import Conflict, RoomNotFound
from roomchat.core.users.services import get_user
from roomchat.core.utils.db import transaction
from roomchat.domains.rooms.events import (
    MEMBER_JOINED,
    MEMBER_LEFT,
    MEMBER_RENAMED,
    ROOM_CREATED,
    ROOM_DELETED,
    ROOM_UPDATED,
)
from roomchat.domains.rooms.models.room_models import Membership, Message, Room
from roomchat.domains.rooms.policy import (
    CREATE_ROOM,
    DELETE_ROOM,
    JOIN_ROOM,
    LEAVE_ROOM,
    UPDATE_ROOM,
    UPDATE_USERNAME,
    RoomPolicy,
)
from roomchat.domains.rooms.services.membership_ledger import MembershipLedger
from roomchat.extensions import db
from roomchat.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

_DUPLICATE_NAME = "room name already taken"


def _name_taken(name: str, *, exclude_id: Optional[int] = None) -> bool:
    query = Room.query.filter(func.lower(Room.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Room.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def create_room(identity: VerifiedIdentity, *, name: str, description: str | None = None) -> Room:
    """Create a room owned by the caller. The owner is not joined automatically."""
    RoomPolicy().require(CREATE_ROOM, identity)
    name = name.strip()
    if _name_taken(name):
        raise Conflict(_DUPLICATE_NAME)

    room = Room(name=name, description=(description or "").strip(), owner_id=identity.user_id)
    with transaction("create_room"):
        db.session.add(room)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise Conflict(_DUPLICATE_NAME) from exc
        enqueue_outbox(
            ROOM_CREATED,
            {
                "room_id": room.id,
                "owner_id": room.owner_id,
                "name": room.name,
                "created_at": room.created_at.isoformat(),
            },
            user_id=identity.user_id,
        )
    logger.info("room created id=%s owner_id=%s", room.id, room.owner_id)
    return room


def list_rooms() -> List[Tuple[Room, int]]:
    """Every room with its member count, oldest first."""
    counts = (
        db.session.query(Membership.room_id, func.count(Membership.user_id).label("members"))
        .group_by(Membership.room_id)
        .subquery()
    )
    rows = (
        db.session.query(Room, func.coalesce(counts.c.members, 0))
        .outerjoin(counts, counts.c.room_id == Room.id)
        .order_by(Room.created_at, Room.id)
        .all()
    )
    return [(room, int(members)) for room, members in rows]


def get_room(room_id: int) -> Tuple[Room, List[Membership]]:
    room = db.session.get(Room, room_id)
    if room is None:
        raise RoomNotFound()
    return room, MembershipLedger().list_by_room(room_id)


def get_room_by_name(name: str) -> Room:
    room = Room.query.filter(func.lower(Room.name) == name.strip().lower()).first()
    if room is None:
        raise RoomNotFound()
    return room


def search_rooms_by_name(name: str, *, page: int = 1, per_page: int = 20) -> Tuple[List[Room], int]:
    pattern = f"%{name.strip()}%"
    query = Room.query.filter(Room.name.ilike(pattern)).order_by(Room.name, Room.id)
    total = query.count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return items, total


def update_room(identity: VerifiedIdentity, room_id: int, **fields) -> Room:
    changed = {}
    with transaction("update_room"):
        RoomPolicy().require(UPDATE_ROOM, identity, room_id=room_id)
        room = db.session.get(Room, room_id)
        name = fields.get("name")
        if name is not None:
            name = name.strip()
            if _name_taken(name, exclude_id=room.id):
                raise Conflict(_DUPLICATE_NAME)
            room.name = name
            changed["name"] = name
        description = fields.get("description")
        if description is not None:
            room.description = description.strip()
            changed["description"] = room.description
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise Conflict(_DUPLICATE_NAME) from exc
        enqueue_outbox(
            ROOM_UPDATED,
            {"room_id": room.id, "owner_id": room.owner_id, "fields": changed},
            user_id=identity.user_id,
        )
    return room


def _delete_messages(room_id: int) -> int:
    return Message.query.filter_by(room_id=room_id).delete(synchronize_session="evaluate")


def _delete_room_row(room: Room) -> None:
    db.session.delete(room)
    db.session.flush()


def delete_room(identity: VerifiedIdentity, room_id: int) -> int:
    """Remove a room, its messages and its memberships in one transaction.

    Returns the number of memberships removed. Any failure rolls back the whole cascade.
    """
    policy = RoomPolicy()
    with transaction("delete_room"):
        policy.require(DELETE_ROOM, identity, room_id=room_id)
        room = db.session.get(Room, room_id)
        messages_removed = _delete_messages(room_id)
        members_removed = policy.ledger.remove_all(room_id)
        _delete_room_row(room)
        enqueue_outbox(
            ROOM_DELETED,
            {
                "room_id": room_id,
                "owner_id": identity.user_id,
                "members_removed": members_removed,
                "messages_removed": messages_removed,
            },
            user_id=identity.user_id,
        )
    logger.info(
        "room deleted id=%s members_removed=%s messages_removed=%s",
        room_id,
        members_removed,
        messages_removed,
    )
    return members_removed


def join_room(identity: VerifiedIdentity, room_id: int, *, username: str | None = None) -> Membership:
    """Add the caller to a room; ``username`` defaults to the caller's global name."""
    policy = RoomPolicy()
    with transaction("join_room"):
        policy.require(JOIN_ROOM, identity, room_id=room_id)
        display_name = username or get_user(identity.user_id).username
        membership = policy.ledger.add(room_id, identity.user_id, display_name)
        enqueue_outbox(
            MEMBER_JOINED,
            {"room_id": room_id, "user_id": identity.user_id, "username": display_name},
            user_id=identity.user_id,
        )
    return membership


def leave_room(identity: VerifiedIdentity, room_id: int) -> None:
    policy = RoomPolicy()
    with transaction("leave_room"):
        policy.require(LEAVE_ROOM, identity, room_id=room_id)
        policy.ledger.remove(room_id, identity.user_id)
        enqueue_outbox(
            MEMBER_LEFT,
            {"room_id": room_id, "user_id": identity.user_id},
            user_id=identity.user_id,
        )


def update_username(
    identity: VerifiedIdentity,
    room_id: int,
    new_username: str,
    *,
    target_user_id: int | None = None,
) -> None:
    """Rename a member inside one room. Only the member themself may do it."""
    target = identity.user_id if target_user_id is None else target_user_id
    policy = RoomPolicy()
    with transaction("update_username"):
        policy.require(UPDATE_USERNAME, identity, room_id=room_id, target_user_id=target)
        policy.ledger.update_username(room_id, target, new_username)
        enqueue_outbox(
            MEMBER_RENAMED,
            {"room_id": room_id, "user_id": target, "username": new_username},
            user_id=identity.user_id,
        )


def count_members(room_id: int) -> int:
    return MembershipLedger().count(room_id)


def check_user(identity: VerifiedIdentity, room_id: int) -> bool:
    return MembershipLedger().is_member(room_id, identity.user_id)


__all__ = [
    "create_room",
    "list_rooms",
    "get_room",
    "get_room_by_name",
    "search_rooms_by_name",
    "update_room",
    "delete_room",
    "join_room",
    "leave_room",
    "update_username",
    "count_members",
    "check_user",
]
