"""Room API controllers."""

from __future__ import annotations

import math

from flask import Blueprint, jsonify

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.utils.decorators import session_required
from roomchat.core.utils.validation import parse_body, parse_query, validation_error
from roomchat.domains.rooms import services
from roomchat.domains.rooms.mappers import map_member, map_message, map_room
from roomchat.domains.rooms.schemas.room_schemas import (
    JoinRoomRequest,
    MessageCreate,
    MessageListParams,
    RoomCreate,
    RoomSearchParams,
    RoomUpdate,
    UsernameUpdate,
)

room_api_bp = Blueprint("room_api", __name__)


def _page_envelope(items, total: int, page: int, per_page: int) -> dict:
    # An empty result is still one (empty) page.
    pages = max(1, math.ceil(total / per_page))
    return {"ok": True, "items": items, "page": page, "pages": pages, "total": total}


@room_api_bp.get("")
@session_required
def list_rooms(identity: VerifiedIdentity):
    rooms = services.list_rooms()
    return jsonify({"ok": True, "items": [map_room(room, member_count=count) for room, count in rooms]})


@room_api_bp.post("")
@session_required
def create_room(identity: VerifiedIdentity):
    data, err = parse_body(RoomCreate)
    if err:
        return validation_error(err)
    room = services.create_room(identity, name=data.name, description=data.description)
    return jsonify({"ok": True, "room": map_room(room, member_count=0)}), 201


@room_api_bp.get("/<int:room_id>")
@session_required
def get_room(room_id: int, identity: VerifiedIdentity):
    room, members = services.get_room(room_id)
    return jsonify(
        {
            "ok": True,
            "room": map_room(room, member_count=len(members)),
            "members": [map_member(m) for m in members],
        }
    )


@room_api_bp.patch("/<int:room_id>")
@session_required
def update_room(room_id: int, identity: VerifiedIdentity):
    data, err = parse_body(RoomUpdate)
    if err:
        return validation_error(err)
    room = services.update_room(
        identity,
        room_id,
        **{k: v for k, v in data.model_dump().items() if v is not None},
    )
    return jsonify({"ok": True, "room": map_room(room)})


@room_api_bp.delete("/<int:room_id>")
@session_required
def delete_room(room_id: int, identity: VerifiedIdentity):
    removed = services.delete_room(identity, room_id)
    return jsonify({"ok": True, "members_removed": removed})


@room_api_bp.get("/name/<string:name>")
@session_required
def get_room_by_name(name: str, identity: VerifiedIdentity):
    room = services.get_room_by_name(name)
    return jsonify({"ok": True, "room": map_room(room)})


@room_api_bp.get("/search/<string:name>")
@session_required
def search_rooms(name: str, identity: VerifiedIdentity):
    params, err = parse_query(RoomSearchParams)
    if err:
        return validation_error(err)
    items, total = services.search_rooms_by_name(name, page=params.page, per_page=params.per_page)
    return jsonify(_page_envelope([map_room(r) for r in items], total, params.page, params.per_page))


@room_api_bp.get("/<int:room_id>/members/count")
@session_required
def count_members(room_id: int, identity: VerifiedIdentity):
    return jsonify({"ok": True, "room_id": room_id, "count": services.count_members(room_id)})


@room_api_bp.get("/<int:room_id>/check-user")
@session_required
def check_user(room_id: int, identity: VerifiedIdentity):
    return jsonify({"ok": True, "room_id": room_id, "in_room": services.check_user(identity, room_id)})


@room_api_bp.post("/<int:room_id>/join")
@session_required
def join_room(room_id: int, identity: VerifiedIdentity):
    data, err = parse_body(JoinRoomRequest)
    if err:
        return validation_error(err)
    membership = services.join_room(identity, room_id, username=data.username)
    return jsonify({"ok": True, "member": map_member(membership)}), 201


@room_api_bp.post("/<int:room_id>/leave")
@session_required
def leave_room(room_id: int, identity: VerifiedIdentity):
    services.leave_room(identity, room_id)
    return jsonify({"ok": True})


@room_api_bp.patch("/<int:room_id>/username")
@session_required
def update_username(room_id: int, identity: VerifiedIdentity):
    data, err = parse_body(UsernameUpdate)
    if err:
        return validation_error(err)
    services.update_username(identity, room_id, data.username, target_user_id=data.user_id)
    return jsonify({"ok": True, "username": data.username})


@room_api_bp.get("/<int:room_id>/messages")
@session_required
def list_messages(room_id: int, identity: VerifiedIdentity):
    params, err = parse_query(MessageListParams)
    if err:
        return validation_error(err)
    items, total = services.list_messages(identity, room_id, page=params.page, per_page=params.per_page)
    return jsonify(_page_envelope([map_message(m) for m in items], total, params.page, params.per_page))


@room_api_bp.post("/<int:room_id>/messages")
@session_required
def post_message(room_id: int, identity: VerifiedIdentity):
    data, err = parse_body(MessageCreate)
    if err:
        return validation_error(err)
    message = services.post_message(identity, room_id, body=data.body)
    return jsonify({"ok": True, "message": map_message(message)}), 201
