"""
Notes Backend — OTP Challenge Manager
======================================

What:  Issues and checks the emailed six-digit passcodes that prove control of
       an email address.
How:   The live challenge (code + absolute expiry) is stored on the user row.
       request_challenge overwrites it; verify_challenge compares it, then
       clears it together with setting is_verified.
Who:   Called by POST /api/auth/send-otp and POST /api/auth/verify-otp.

State per user:
    no challenge ──request──▶ pending(code, expires)
    pending ──request──▶ pending(new code, new expiry)   (old code is dead)
    pending ──verify ok (code ==, now < expires)──▶ no challenge, verified
    pending ──verify bad──▶ pending (unchanged)

Expiry is checked lazily at verification time; nothing sweeps old codes.
Two concurrent requests for one email race at the row level and the last
write wins: only the most recently stored code can verify.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    ChallengeNotFoundError,
    DuplicateUserError,
    InvalidOrExpiredChallengeError,
    ValidationError,
)
from app.models.user import User
from app.services.email_base import EmailSender
from app.services.email_service import email_sender
from app.services.user_store import UserStore, normalize_email, user_store

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Databases without timezone support hand back naive UTC datetimes."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_code() -> str:
    """Uniformly random code in 100000-999999 (never a leading zero)."""
    return str(100000 + secrets.randbelow(900000))


class OTPService:
    """
    Business logic for OTP challenges.

    Dependencies are injected so tests can swap the mailer, the store and
    the clock; the module-level `otp_service` wires the production ones.
    """

    def __init__(
        self,
        sender: EmailSender,
        store: UserStore,
        ttl: timedelta = timedelta(minutes=10),
        clock: Clock = utcnow,
        code_factory: Callable[[], str] = generate_code,
    ):
        self.sender = sender
        self.store = store
        self.ttl = ttl
        self.clock = clock
        self.code_factory = code_factory

    @property
    def expires_in_text(self) -> str:
        minutes = int(self.ttl.total_seconds() // 60)
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"

    async def request_challenge(self, db: AsyncSession, email: str) -> str:
        """
        Create (or replace) the challenge for an email and mail the code.

        Workflow:
            1. Validate and normalize the email
            2. Generate code + expiry
            3. Load the user, creating it on first contact
            4. Store the challenge (replaces any pending one), flush
            5. Send the code through the EmailSender

        Returns:
            Human-readable lifetime of the code (e.g. "10 minutes").
            The code itself is never returned.

        Raises:
            ValidationError:  email missing or blank
            PersistenceError: the store write failed
            DeliveryError:    the email could not be sent
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required", field="email")

        code = self.code_factory()
        expires_at = self.clock() + self.ttl

        user = await self.store.find_by_email(db, email)
        if user is None:
            user = User(email=email, is_verified=False)
            user.set_challenge(code, expires_at)
            try:
                await self.store.create(db, user)
            except DuplicateUserError:
                # A concurrent send-otp created the row first; overwrite it.
                await db.rollback()
                user = await self.store.find_by_email(db, email)
                if user is None:
                    raise
                user.set_challenge(code, expires_at)
                await self.store.save(db, user)
        else:
            user.set_challenge(code, expires_at)
            await self.store.save(db, user)

        logger.info("OTP challenge stored for user %s (expires %s)", user.id, expires_at.isoformat())

        await self.sender.send_otp(email, code)
        return self.expires_in_text

    async def verify_challenge(self, db: AsyncSession, email: str, code: str) -> User:
        """
        Check a submitted code and consume it on success.

        Succeeds only if a user exists for the email, the stored code equals
        the submitted code exactly, and the stored expiry is strictly later
        than now. On success the challenge is cleared and the user marked
        verified in one flush; verification is never revoked afterwards.

        Raises:
            ValidationError:               email or code missing
            ChallengeNotFoundError:        no user for this email
            InvalidOrExpiredChallengeError: wrong, absent, or expired code
            PersistenceError:              the store write failed
        """
        email = normalize_email(email)
        code = code or ""
        if not email or not code.strip():
            raise ValidationError("Email and OTP are required")

        user = await self.store.find_by_email(db, email)
        if user is None:
            logger.info("OTP verification for unknown email rejected")
            raise ChallengeNotFoundError()

        now = self.clock()
        if user.otp is None or user.otp_expires is None:
            logger.info("OTP verification for user %s rejected: no pending challenge", user.id)
            raise InvalidOrExpiredChallengeError(context={"user_id": str(user.id)})
        if not secrets.compare_digest(user.otp.encode(), code.encode()):
            logger.info("OTP verification for user %s rejected: code mismatch", user.id)
            raise InvalidOrExpiredChallengeError(context={"user_id": str(user.id)})
        if not now < as_utc(user.otp_expires):
            logger.info("OTP verification for user %s rejected: expired", user.id)
            raise InvalidOrExpiredChallengeError(context={"user_id": str(user.id)})

        user.is_verified = True
        user.clear_challenge()
        await self.store.save(db, user)

        logger.info("OTP verified for user %s", user.id)
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
otp_service = OTPService(
    sender=email_sender,
    store=user_store,
    ttl=timedelta(minutes=settings.otp_ttl_minutes),
)
