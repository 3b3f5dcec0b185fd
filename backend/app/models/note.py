"""
Notes Backend — Note SQLAlchemy Model
======================================

What:  ORM model representing the `notes` table: a user's plain-text notes.
Who:   Used by NoteService for create/list/update/delete.

Table Design:
    - user_id: owner; every query filters on it so a user can only see and
      change their own notes
    - content: free text, no length limit
    - created_at / updated_at: UTC; updated_at is refreshed on every edit

    Index on (user_id, created_at DESC) serves the only list query:
    "this user's notes, newest first".
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """A personal text note owned by exactly one user."""

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_user_created_at", user_id, created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id}, created_at='{self.created_at}')>"
