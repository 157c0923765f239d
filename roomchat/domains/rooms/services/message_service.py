"""Message service layer."""

from __future__ import annotations

from typing import List, Tuple

from roomchat.core.auth.middleware import VerifiedIdentity
from roomchat.core.utils.db import transaction
from roomchat.domains.rooms.events import MESSAGE_POSTED
from roomchat.domains.rooms.models.room_models import Message
from roomchat.domains.rooms.policy import POST_MESSAGE, READ_MESSAGES, RoomPolicy
from roomchat.extensions import db
from roomchat.platform.outbox import enqueue as enqueue_outbox


def post_message(identity: VerifiedIdentity, room_id: int, *, body: str) -> Message:
    with transaction("post_message"):
        RoomPolicy().require(POST_MESSAGE, identity, room_id=room_id)
        message = Message(room_id=room_id, author_id=identity.user_id, body=body.strip())
        db.session.add(message)
        db.session.flush()
        enqueue_outbox(
            MESSAGE_POSTED,
            {
                "message_id": message.id,
                "room_id": room_id,
                "author_id": identity.user_id,
                "created_at": message.created_at.isoformat(),
            },
            user_id=identity.user_id,
        )
    return message


def list_messages(
    identity: VerifiedIdentity, room_id: int, *, page: int = 1, per_page: int = 50
) -> Tuple[List[Message], int]:
    """Newest first; only members may read."""
    RoomPolicy().require(READ_MESSAGES, identity, room_id=room_id)
    query = Message.query.filter_by(room_id=room_id).order_by(Message.created_at.desc(), Message.id.desc())
    total = query.count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return items, total


__all__ = ["post_message", "list_messages"]
