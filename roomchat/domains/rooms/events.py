"""Rooms domain event catalog."""

from __future__ import annotations

ROOM_CREATED = "rooms.room.created"
ROOM_UPDATED = "rooms.room.updated"
ROOM_DELETED = "rooms.room.deleted"
MEMBER_JOINED = "rooms.member.joined"
MEMBER_LEFT = "rooms.member.left"
MEMBER_RENAMED = "rooms.member.renamed"
MESSAGE_POSTED = "rooms.message.posted"

EVENT_CATALOG = {
    ROOM_CREATED: {
        "version": "v1",
        "payload": {"room_id": "int", "owner_id": "int", "name": "str", "created_at": "datetime"},
    },
    ROOM_UPDATED: {
        "version": "v1",
        "payload": {"room_id": "int", "owner_id": "int", "fields": "dict"},
    },
    ROOM_DELETED: {
        "version": "v1",
        "payload": {"room_id": "int", "owner_id": "int", "members_removed": "int", "messages_removed": "int"},
    },
    MEMBER_JOINED: {
        "version": "v1",
        "payload": {"room_id": "int", "user_id": "int", "username": "str"},
    },
    MEMBER_LEFT: {
        "version": "v1",
        "payload": {"room_id": "int", "user_id": "int"},
    },
    MEMBER_RENAMED: {
        "version": "v1",
        "payload": {"room_id": "int", "user_id": "int", "username": "str"},
    },
    MESSAGE_POSTED: {
        "version": "v1",
        "payload": {"message_id": "int", "room_id": "int", "author_id": "int", "created_at": "datetime"},
    },
}

__all__ = [
    "EVENT_CATALOG",
    "ROOM_CREATED",
    "ROOM_UPDATED",
    "ROOM_DELETED",
    "MEMBER_JOINED",
    "MEMBER_LEFT",
    "MEMBER_RENAMED",
    "MESSAGE_POSTED",
]
