"""Session authority: password and email-link login, logout and admin revocation."""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime
from hashlib import sha256
from typing import Optional
from urllib.parse import urlencode

from flask import current_app

from roomchat.core.auth.events import (
    AUTH_EMAIL_LOGIN_LINK,
    AUTH_LOGIN_LINK_REQUESTED,
    AUTH_SESSION_ADMIN_RESET,
    AUTH_SESSION_CREATED,
    AUTH_SESSION_REVOKED,
)
from roomchat.core.auth.models import LoginLink
from roomchat.core.auth.password import verify_password
from roomchat.core.auth.session_repository import CredentialStore
from roomchat.core.auth.token_codec import TokenCodec
from roomchat.core.errors import InvalidCredentials, InvalidLoginLink, UserNotFound
from roomchat.core.users.models import User
from roomchat.core.users.schemas import UserResponse, serialize_user
from roomchat.core.users.services import find_by_email, get_user
from roomchat.core.utils.db import transaction
from roomchat.extensions import db
from roomchat.platform.outbox import enqueue as enqueue_outbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: UserResponse
    token: str
    session_id: str
    expires_at: datetime


class SessionAuthority:
    """Creates credentials on login and revokes them on logout.

    One identity may hold several live sessions at once; each login is independent.
    """

    def __init__(self, store: Optional[CredentialStore] = None, codec: Optional[TokenCodec] = None):
        self.store = store or CredentialStore()
        self.codec = codec or TokenCodec()

    def login(self, email: str, password: str) -> LoginResult:
        user = find_by_email(email)
        # Both failure paths raise the same error so callers cannot enumerate accounts.
        if user is None:
            verify_password(password, None)
            logger.info("login failed: unknown email")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("login failed: bad password user_id=%s", user.id)
            raise InvalidCredentials()
        if not user.is_active:
            logger.info("login failed: inactive user_id=%s", user.id)
            raise InvalidCredentials()

        with transaction("login"):
            return self._open_session(user, via="password")

    def request_login_link(self, email: str) -> None:
        """Stage a one-time login link for delivery by email.

        The outcome is silent: unknown and inactive addresses return normally too.
        """
        user = find_by_email(email)
        if user is None or not user.is_active:
            with transaction("request_login_link"):
                enqueue_outbox(
                    AUTH_LOGIN_LINK_REQUESTED,
                    {"email": email, "user_id": None, "expires_at": None},
                    user_id=None,
                )
            logger.info("login link requested for unknown or inactive email")
            return

        raw_token, token_hash = _generate_link_token()
        expires_at = datetime.utcnow() + current_app.config["LOGIN_LINK_TTL"]
        with transaction("request_login_link"):
            link = LoginLink(user_id=user.id, token_hash=token_hash, expires_at=expires_at)
            db.session.add(link)
            db.session.flush()
            enqueue_outbox(
                AUTH_LOGIN_LINK_REQUESTED,
                {"user_id": user.id, "email": user.email, "expires_at": expires_at.isoformat()},
                user_id=user.id,
            )
            enqueue_outbox(
                AUTH_EMAIL_LOGIN_LINK,
                {
                    "user_id": user.id,
                    "email": user.email,
                    "token": raw_token,
                    "link_url": _link_url(raw_token),
                    "expires_at": expires_at.isoformat(),
                },
                user_id=user.id,
            )
        logger.info("login link issued user_id=%s link_id=%s", user.id, link.id)

    def login_with_link(self, raw_token: str) -> LoginResult:
        """Redeem a login link once and open a session for its owner."""
        now = datetime.utcnow()
        link = LoginLink.query.filter_by(token_hash=_hash_token(raw_token)).with_for_update().first()
        if link is None:
            db.session.rollback()
            logger.info("login link rejected: unknown token")
            raise InvalidLoginLink()

        user = get_user(link.user_id)
        max_attempts = current_app.config["LOGIN_LINK_MAX_ATTEMPTS"]
        if (
            link.used_at is not None
            or link.expires_at < now
            or link.attempts >= max_attempts
            or user is None
            or not user.is_active
        ):
            with transaction("reject_login_link"):
                link.attempts += 1
            logger.info("login link rejected link_id=%s attempts=%s", link.id, link.attempts)
            raise InvalidLoginLink()

        with transaction("login_with_link"):
            # Conditional update so two concurrent redemptions cannot both succeed.
            consumed = (
                LoginLink.query.filter(LoginLink.id == link.id, LoginLink.used_at.is_(None))
                .update(
                    {"used_at": now, "attempts": LoginLink.attempts + 1},
                    synchronize_session="fetch",
                )
            )
            if consumed != 1:
                raise InvalidLoginLink()
            return self._open_session(user, via="login_link")

    def logout(self, session_id: str, owner_id: int) -> None:
        with transaction("logout"):
            credential = self.store.revoke(session_id, owner_id)
            enqueue_outbox(
                AUTH_SESSION_REVOKED,
                {
                    "session_id": session_id,
                    "user_id": owner_id,
                    "revoked_at": (credential.revoked_at or datetime.utcnow()).isoformat(),
                },
                user_id=owner_id,
            )
        logger.info("session revoked user_id=%s session_id=%s", owner_id, session_id)

    def revoke_all(self, user_id: int, *, reason: str) -> int:
        """Admin reset: revoke every live session of a user."""
        reason_clean = (reason or "").strip()
        if not reason_clean:
            raise ValueError("reason_required")
        if get_user(user_id) is None:
            raise UserNotFound()
        with transaction("revoke_all"):
            count = self.store.revoke_all(user_id)
            enqueue_outbox(
                AUTH_SESSION_ADMIN_RESET,
                {"user_id": user_id, "reset_count": count, "reason": reason_clean},
                user_id=user_id,
            )
        logger.warning("admin session reset user_id=%s count=%s reason=%s", user_id, count, reason_clean)
        return count

    def _open_session(self, user: User, *, via: str) -> LoginResult:
        """Issue a token and store its credential; the caller owns the transaction."""
        session_id = uuid.uuid4().hex
        token, expires_at = self.codec.issue(user.id, session_id)
        self.store.create(session_id, user.id, token, expires_at)
        enqueue_outbox(
            AUTH_SESSION_CREATED,
            {
                "session_id": session_id,
                "user_id": user.id,
                "expires_at": expires_at.isoformat(),
                "via": via,
            },
            user_id=user.id,
        )
        logger.info("session created user_id=%s session_id=%s via=%s", user.id, session_id, via)
        return LoginResult(
            user=serialize_user(user),
            token=token,
            session_id=session_id,
            expires_at=expires_at,
        )


# --- helpers ---


def _generate_link_token() -> tuple[str, str]:
    raw = secrets.token_urlsafe(32)
    return raw, _hash_token(raw)


def _hash_token(raw: str) -> str:
    return sha256(raw.encode("utf-8")).hexdigest()


def _link_url(raw_token: str) -> Optional[str]:
    # Only the configured URL is used; request headers never shape the emailed link.
    base = current_app.config.get("LOGIN_LINK_URL")
    if not base:
        return None
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode({'token': raw_token})}"


__all__ = ["LoginResult", "SessionAuthority"]
