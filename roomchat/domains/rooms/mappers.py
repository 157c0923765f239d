"""DTO mappers for rooms."""

from __future__ import annotations

from roomchat.domains.rooms.models.room_models import Membership, Message, Room


def map_room(room: Room, *, member_count: int | None = None) -> dict:
    data = {
        "id": room.id,
        "name": room.name,
        "description": room.description,
        "owner_id": room.owner_id,
        "created_at": room.created_at.isoformat() if room.created_at else None,
        "updated_at": room.updated_at.isoformat() if room.updated_at else None,
    }
    if member_count is not None:
        data["member_count"] = member_count
    return data


def map_member(membership: Membership) -> dict:
    return {
        "room_id": membership.room_id,
        "user_id": membership.user_id,
        "username": membership.username,
        "joined_at": membership.created_at.isoformat() if membership.created_at else None,
    }


def map_message(message: Message) -> dict:
    return {
        "id": message.id,
        "room_id": message.room_id,
        "author_id": message.author_id,
        "body": message.body,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
