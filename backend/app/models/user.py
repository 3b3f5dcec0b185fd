"""
Notes Backend — User SQLAlchemy Model
======================================

What:  ORM model representing the `users` table: one row per person, however
       they sign in (emailed OTP, Google, or both).
Who:   Read and written only through UserStore.

Table Design:
    - email: unique, the join key between sign-in channels. Stored normalized
      (trimmed, lower-case).
    - google_id: unique when present; set on first Google sign-in or when an
      email-only account is linked.
    - otp / otp_expires: the single live OTP challenge. Both NULL when no
      challenge is pending. Writing a new challenge replaces the old one.
    - is_verified: becomes true on the first successful OTP verification or
      Google sign-in and is never reset.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    """
    A user account.

    Lifecycle:
        1. Created by the first send-otp for an email, or the first Google
           sign-in for an email
        2. OTP fields overwritten on each send-otp, cleared on verification
        3. google_id/name/is_verified set when a Google identity is linked
        4. Never deleted by the authentication flows
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )

    google_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
        default=None,
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    # ── OTP challenge (at most one live challenge per user) ───────────────
    otp: Mapped[Optional[str]] = mapped_column(String(6), nullable=True, default=None)
    otp_expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def set_challenge(self, code: str, expires_at: datetime) -> None:
        """Replace any pending challenge with a new one."""
        self.otp = code
        self.otp_expires = expires_at

    def clear_challenge(self) -> None:
        self.otp = None
        self.otp_expires = None

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, email='{self.email}', "
            f"google={'yes' if self.google_id else 'no'}, verified={self.is_verified})>"
        )
