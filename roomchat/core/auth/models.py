"""Session credential model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from roomchat.core.users.models import TimestampMixin
from roomchat.extensions import db


class SessionCredential(db.Model, TimestampMixin):
    """Server-side record backing one issued token.

    ``is_live`` is authoritative for revocation; ``expires_at`` mirrors the token's
    ``exp`` claim and is advisory only. Rows are never hard-deleted.
    """

    __tablename__ = "session_credential"
    __table_args__ = (
        db.UniqueConstraint("session_id", name="uq_session_credential_session_id"),
        db.Index("ix_session_credential_owner_live", "owner_id", "is_live"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(db.String(64), nullable=False)
    owner_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False, index=True)
    token_value: Mapped[str] = mapped_column(db.Text, nullable=False)
    is_live: Mapped[bool] = mapped_column(default=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)


class LoginLink(db.Model, TimestampMixin):
    """One-time login link sent by email. Only the sha256 of the token is stored."""

    __tablename__ = "login_link"
    __table_args__ = (
        db.UniqueConstraint("token_hash", name="uq_login_link_token_hash"),
        db.Index("ix_login_link_user_expires_at", "user_id", "expires_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False)
    token_hash: Mapped[str] = mapped_column(db.String(128), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(nullable=True)
    attempts: Mapped[int] = mapped_column(default=0, nullable=False)


__all__ = ["SessionCredential", "LoginLink"]
