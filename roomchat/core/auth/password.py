"""Password hashing helpers (bcrypt via Flask-Bcrypt)."""

from __future__ import annotations

from typing import Optional

from flask import current_app

from roomchat.extensions import bcrypt

_DUMMY_HASH_KEY = "roomchat.dummy_password_hash"


def hash_password(plain_password: str) -> str:
    return bcrypt.generate_password_hash(plain_password).decode("utf-8")


def _dummy_hash() -> str:
    cached = current_app.extensions.get(_DUMMY_HASH_KEY)
    if cached is None:
        cached = current_app.extensions[_DUMMY_HASH_KEY] = hash_password("dummy-password-0")
    return cached


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash.

    With no stored hash a throwaway comparison still runs, so an unknown account costs
    the same bcrypt work as a wrong password. Always False in that case.
    """
    if not hashed_password:
        bcrypt.check_password_hash(_dummy_hash(), plain_password or "")
        return False
    try:
        return bcrypt.check_password_hash(hashed_password, plain_password)
    except ValueError:
        # Malformed stored hash (e.g. seeded rows); treat as a mismatch.
        return False
