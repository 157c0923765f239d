"""Room domain models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from roomchat.extensions import db


class Room(db.Model):
    __tablename__ = "room"
    __table_args__ = (
        db.Index("ix_room_owner", "owner_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str] = mapped_column(db.Text, nullable=False, default="")
    # Set once at creation; only the owner may update or delete the room.
    owner_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow, onupdate=datetime.utcnow
    )


# Names are unique regardless of case; lookups compare lower(name) too.
db.Index("uq_room_name_lower", db.func.lower(Room.name), unique=True)


class Membership(db.Model):
    """One row per (room, user); the composite key is the uniqueness guarantee."""

    __tablename__ = "room_membership"
    __table_args__ = (
        db.Index("ix_room_membership_room_created_at", "room_id", "created_at"),
    )

    room_id: Mapped[int] = mapped_column(db.ForeignKey("room.id"), primary_key=True)
    user_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), primary_key=True)
    username: Mapped[str] = mapped_column(db.String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class Message(db.Model):
    __tablename__ = "room_message"
    __table_args__ = (
        db.Index("ix_room_message_room_created_at", "room_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    room_id: Mapped[int] = mapped_column(db.ForeignKey("room.id"), nullable=False)
    author_id: Mapped[int] = mapped_column(db.ForeignKey("user.id"), nullable=False)
    body: Mapped[str] = mapped_column(db.Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


__all__ = ["Room", "Membership", "Message"]
