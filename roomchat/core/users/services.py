"""User service layer."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from roomchat.core.auth.events import AUTH_USER_REGISTERED
from roomchat.core.auth.password import hash_password
from roomchat.core.errors import Conflict
from roomchat.core.users.models import User
from roomchat.core.users.schemas import RegisterRequest
from roomchat.core.utils.db import transaction
from roomchat.extensions import db
from roomchat.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)

_DUPLICATE_USER = "user already exists with the given email or username"


def get_user(user_id: int) -> Optional[User]:
    return db.session.get(User, user_id)


def find_by_email(email: str) -> Optional[User]:
    normalized = (email or "").strip().lower()
    return User.query.filter(func.lower(User.email) == normalized).first()


def register_user(payload: RegisterRequest) -> User:
    """Create an identity, emitting auth.user.registered via the outbox."""
    existing = User.query.filter(
        or_(func.lower(User.email) == payload.email, User.username == payload.username)
    ).first()
    if existing:
        raise Conflict(_DUPLICATE_USER)

    user = User(
        email=payload.email,
        username=payload.username,
        full_name=payload.full_name,
        password_hash=hash_password(payload.password),
    )
    with transaction("register_user"):
        db.session.add(user)
        try:
            db.session.flush()  # ensure user.id for the event
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email/username.
            raise Conflict(_DUPLICATE_USER) from exc
        enqueue_outbox(
            AUTH_USER_REGISTERED,
            {"user_id": user.id, "email": user.email, "username": user.username},
            user_id=user.id,
        )
    logger.info("user registered id=%s", user.id)
    return user
