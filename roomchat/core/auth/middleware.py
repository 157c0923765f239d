"""Per-request session gate.

Every request re-verifies its bearer token against the live credential store, so logout
and admin resets take effect immediately even though the token signature and expiry would
still verify on their own.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from roomchat.core.auth.session_repository import CredentialStore
from roomchat.core.auth.token_codec import InvalidToken, TokenCodec
from roomchat.core.errors import NotFound, StorageFailure, Unauthenticated

logger = logging.getLogger(__name__)

MSG_TOKEN_MISSING = "token could not be found"
MSG_TOKEN_INVALID = "token is invalid"
MSG_SESSION_INVALID = "session is invalid"


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity that passed the gate; handed explicitly to downstream handlers."""

    user_id: int
    session_id: str


def extract_bearer_token(authorization: Optional[str]) -> str:
    parts = (authorization or "").split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise Unauthenticated(MSG_TOKEN_MISSING)
    return parts[1]


class SessionGate:
    def __init__(self, codec: Optional[TokenCodec] = None, store: Optional[CredentialStore] = None):
        self.codec = codec or TokenCodec()
        self.store = store or CredentialStore()

    def authenticate(self, authorization: Optional[str]) -> VerifiedIdentity:
        token = extract_bearer_token(authorization)

        try:
            claims = self.codec.verify(token)
        except InvalidToken as exc:
            logger.info("token rejected: %s", exc.reason)
            raise Unauthenticated(MSG_TOKEN_INVALID) from exc

        try:
            credential = self.store.get_by_id(claims.session_id)
        except NotFound as exc:
            logger.info("token rejected: unknown session_id=%s", claims.session_id)
            raise Unauthenticated(MSG_TOKEN_INVALID) from exc
        except SQLAlchemyError as exc:
            logger.exception("credential lookup failed session_id=%s", claims.session_id)
            raise StorageFailure() from exc

        # Token equality blocks replay of an older token that shares the session id.
        same_token = hmac.compare_digest(credential.token_value.encode(), token.encode())
        if not same_token or credential.owner_id != claims.user_id or not credential.is_live:
            logger.info(
                "session rejected session_id=%s live=%s token_match=%s owner_match=%s",
                claims.session_id,
                credential.is_live,
                same_token,
                credential.owner_id == claims.user_id,
            )
            raise Unauthenticated(MSG_SESSION_INVALID)

        return VerifiedIdentity(user_id=claims.user_id, session_id=claims.session_id)


__all__ = ["VerifiedIdentity", "SessionGate", "extract_bearer_token"]
