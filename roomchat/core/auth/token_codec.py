"""Signed, expiring session tokens.

The codec is stateless: it signs and verifies HS256 JWTs through flask-jwt-extended and
never touches storage. A successful ``verify`` is the only way to obtain ``TokenClaims``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import ExpiredSignatureError, InvalidSignatureError, PyJWTError

SESSION_CLAIM = "sid"


class InvalidToken(Exception):
    """Raised for malformed, forged or expired tokens.

    ``reason`` is for logs only; callers must not surface it to clients.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    session_id: str
    expires_at: datetime


class TokenCodec:
    def __init__(self, default_ttl: Optional[timedelta] = None):
        self._default_ttl = default_ttl

    def _ttl(self, ttl: Optional[timedelta]) -> timedelta:
        if ttl is not None:
            return ttl
        if self._default_ttl is not None:
            return self._default_ttl
        return current_app.config["SESSION_TTL"]

    def issue(self, user_id: int, session_id: str, ttl: Optional[timedelta] = None) -> tuple[str, datetime]:
        """Sign a token for ``user_id`` bound to ``session_id``; returns (token, expires_at)."""
        token = create_access_token(
            identity=str(user_id),
            expires_delta=self._ttl(ttl),
            additional_claims={SESSION_CLAIM: session_id},
        )
        # Read exp back from the signed payload so the stored expiry matches it exactly.
        exp = decode_token(token, allow_expired=True)["exp"]
        return token, datetime.utcfromtimestamp(exp)

    def verify(self, token_value: str) -> TokenClaims:
        if not token_value or not isinstance(token_value, str):
            raise InvalidToken("empty")
        try:
            payload = decode_token(token_value)
        except ExpiredSignatureError as exc:
            raise InvalidToken("expired") from exc
        except InvalidSignatureError as exc:
            raise InvalidToken("bad_signature") from exc
        except (PyJWTError, JWTExtendedException) as exc:
            raise InvalidToken(f"malformed: {exc}") from exc

        if payload.get("type") != "access":
            raise InvalidToken("wrong_type")
        session_id = payload.get(SESSION_CLAIM)
        if not isinstance(session_id, str) or not session_id:
            raise InvalidToken("missing_session_claim")
        try:
            user_id = int(payload[current_app.config["JWT_IDENTITY_CLAIM"]])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken("bad_identity_claim") from exc
        return TokenClaims(
            user_id=user_id,
            session_id=session_id,
            expires_at=datetime.utcfromtimestamp(payload["exp"]),
        )


__all__ = ["InvalidToken", "TokenClaims", "TokenCodec", "SESSION_CLAIM"]
