"""Credential store: persistence for session credentials."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from roomchat.core.auth.models import SessionCredential
from roomchat.core.errors import Conflict, NotFound
from roomchat.extensions import db


class CredentialStore:
    """Single-row operations on ``session_credential``.

    Nothing here commits; the service layer commits alongside its outbox messages.
    A uniqueness violation on ``create`` rolls the session back before raising.
    """

    def __init__(self, session=None):
        self._session = session or db.session

    def create(self, session_id: str, owner_id: int, token_value: str, expires_at: datetime) -> SessionCredential:
        credential = SessionCredential(
            session_id=session_id,
            owner_id=owner_id,
            token_value=token_value,
            expires_at=expires_at,
            is_live=True,
        )
        self._session.add(credential)
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            raise Conflict("session already exists") from exc
        return credential

    def get_by_id(self, session_id: str) -> SessionCredential:
        credential = (
            self._session.query(SessionCredential).filter_by(session_id=session_id).one_or_none()
        )
        if credential is None:
            raise NotFound("session not found")
        return credential

    def revoke(self, session_id: str, owner_id: int) -> SessionCredential:
        """Flip ``is_live`` off. Revoking an already revoked session is a no-op."""
        credential = (
            self._session.query(SessionCredential)
            .filter_by(session_id=session_id, owner_id=owner_id)
            .one_or_none()
        )
        if credential is None:
            raise NotFound("session not found")
        if credential.is_live:
            credential.is_live = False
            credential.revoked_at = datetime.utcnow()
        return credential

    def revoke_all(self, owner_id: int) -> int:
        """Revoke every live session for an owner; returns the number revoked."""
        return (
            self._session.query(SessionCredential)
            .filter_by(owner_id=owner_id, is_live=True)
            .update({"is_live": False, "revoked_at": datetime.utcnow()}, synchronize_session="evaluate")
        )

    def list_for_owner(self, owner_id: int) -> list[SessionCredential]:
        """Read-only listing, newest first (not used for authz)."""
        return (
            self._session.query(SessionCredential)
            .filter_by(owner_id=owner_id)
            .order_by(SessionCredential.created_at.desc())
            .all()
        )


__all__ = ["CredentialStore"]
