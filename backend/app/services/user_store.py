"""
Notes Backend — User Record Store
==================================

What:  The only code that reads or writes `users` rows.
How:   Thin async repository over SQLAlchemy. Each method receives the
       request's AsyncSession; writes are flushed (not committed) so they
       join the request transaction opened by get_db_session.
Who:   OTPService, AccountLinker and the session-token dependency.

Atomicity:
    A user row is changed by a single flush of a single object, so the OTP
    fields, verification flag and Google link always land together. Unique
    constraints on email and google_id turn a lost creation race into
    DuplicateUserError instead of a second row.
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateUserError, PersistenceError
from app.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    """Canonical form of the email join key."""
    return (email or "").strip().lower()


class UserStore:
    """
    Repository for User rows.

    Lookups return None when nothing matches; every database failure is
    re-raised as PersistenceError with the driver error kept in context.
    """

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        return await self._first(db, select(User).where(User.email == normalize_email(email)))

    async def find_by_google_id(self, db: AsyncSession, google_id: str) -> Optional[User]:
        return await self._first(db, select(User).where(User.google_id == google_id))

    async def find_by_id(
        self, db: AsyncSession, user_id: Union[str, uuid.UUID]
    ) -> Optional[User]:
        """
        Fetch a user by primary key. Accepts the string form carried in
        session tokens; anything that is not a UUID simply matches nothing.
        """
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                return None
        return await self._first(db, select(User).where(User.id == user_id))

    async def create(self, db: AsyncSession, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateUserError: another row already holds this email/google_id
            PersistenceError: any other database failure
        """
        user.email = normalize_email(user.email)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("User insert lost a uniqueness race for %s", user.email)
            raise DuplicateUserError(
                message="A user with this identity already exists.",
                context={"error_type": type(e).__name__},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e))
            raise PersistenceError(context={"error_type": type(e).__name__}) from e
        logger.info("Created user %s", user.id)
        return user

    async def save(self, db: AsyncSession, user: User) -> User:
        """Persist changes to a user (insert if new, update otherwise)."""
        if user.id is None:
            return await self.create(db, user)
        db.add(user)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error saving user %s: %s", user.id, str(e))
            raise PersistenceError(context={"user_id": str(user.id)}) from e
        return user

    async def _first(self, db: AsyncSession, query) -> Optional[User]:
        try:
            result = await db.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user: %s", str(e))
            raise PersistenceError(context={"error_type": type(e).__name__}) from e


# ── Singleton Instance ────────────────────────────────────────────────────
user_store = UserStore()
