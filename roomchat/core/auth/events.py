"""Auth domain event catalog."""

from __future__ import annotations

AUTH_USER_REGISTERED = "auth.user.registered"
AUTH_SESSION_CREATED = "auth.session.created"
AUTH_SESSION_REVOKED = "auth.session.revoked"
AUTH_SESSION_ADMIN_RESET = "auth.session.admin_reset"
AUTH_LOGIN_LINK_REQUESTED = "auth.login_link.requested"
# Consumed by the mailer; carries the raw one-time token.
AUTH_EMAIL_LOGIN_LINK = "auth.email.login_link"

EVENT_CATALOG = {
    AUTH_USER_REGISTERED: {
        "version": "v1",
        "payload": {"user_id": "int", "email": "str", "username": "str"},
    },
    AUTH_SESSION_CREATED: {
        "version": "v1",
        "payload": {"session_id": "str", "user_id": "int", "expires_at": "datetime", "via": "str"},
    },
    AUTH_SESSION_REVOKED: {
        "version": "v1",
        "payload": {"session_id": "str", "user_id": "int", "revoked_at": "datetime"},
    },
    AUTH_SESSION_ADMIN_RESET: {
        "version": "v1",
        "payload": {"user_id": "int", "reset_count": "int", "reason": "str"},
    },
    AUTH_LOGIN_LINK_REQUESTED: {
        "version": "v1",
        "payload": {"user_id": "int|null", "email": "str", "expires_at": "datetime|null"},
    },
    AUTH_EMAIL_LOGIN_LINK: {
        "version": "v1",
        "payload": {
            "user_id": "int",
            "email": "str",
            "token": "str",
            "link_url": "str|null",
            "expires_at": "datetime",
        },
    },
}

__all__ = [
    "AUTH_USER_REGISTERED",
    "AUTH_SESSION_CREATED",
    "AUTH_SESSION_REVOKED",
    "AUTH_SESSION_ADMIN_RESET",
    "AUTH_LOGIN_LINK_REQUESTED",
    "AUTH_EMAIL_LOGIN_LINK",
    "EVENT_CATALOG",
]
