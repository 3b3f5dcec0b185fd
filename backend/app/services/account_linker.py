"""
Notes Backend — Account Linker
===============================

What:  Maps a verified Google identity onto exactly one user row.
How:   Lookup order is fixed:
           1. user whose google_id == claim.subject        → return it
           2. user whose email == claim.email              → link and return it
           3. neither                                      → create and return it
Who:   Called by POST /api/auth/google after GoogleIdentityVerifier.

Linking an email-only (OTP) account sets google_id, replaces the display
name with Google's, and marks the user verified. Repeated calls with the
same claim resolve to the same row through step 1, so the operation is
idempotent. If two first-time sign-ins for one email race, the loser's
insert hits the unique constraint; it then re-reads the winner and links it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateUserError
from app.models.user import User
from app.schemas.auth import GoogleIdentityClaim
from app.services.user_store import UserStore, user_store

logger = logging.getLogger(__name__)


class AccountLinker:
    """Resolves Google identities to canonical user records."""

    def __init__(self, store: UserStore):
        self.store = store

    async def resolve_or_create(self, db: AsyncSession, claim: GoogleIdentityClaim) -> User:
        """
        Return the single user for this Google identity, linking or creating
        as needed.

        Raises:
            TypeError:        claim is not a verified GoogleIdentityClaim
            PersistenceError: the store read/write failed
        """
        if not isinstance(claim, GoogleIdentityClaim):
            raise TypeError("resolve_or_create requires a verified GoogleIdentityClaim")

        user = await self.store.find_by_google_id(db, claim.subject)
        if user is not None:
            logger.info("Google sign-in matched user %s by google id", user.id)
            return user

        user = await self.store.find_by_email(db, claim.email)
        if user is not None:
            return await self._link(db, user, claim)

        try:
            user = await self.store.create(
                db,
                User(
                    email=claim.email,
                    google_id=claim.subject,
                    name=claim.name,
                    is_verified=True,
                ),
            )
        except DuplicateUserError:
            # Another request created this identity first; converge on its row.
            await db.rollback()
            return await self._resolve_after_race(db, claim)

        logger.info("Created user %s from Google sign-in", user.id)
        return user

    async def _link(self, db: AsyncSession, user: User, claim: GoogleIdentityClaim) -> User:
        user.google_id = claim.subject
        user.name = claim.name
        user.is_verified = True
        await self.store.save(db, user)
        logger.info("Linked Google identity to existing user %s", user.id)
        return user

    async def _resolve_after_race(self, db: AsyncSession, claim: GoogleIdentityClaim) -> User:
        user = await self.store.find_by_google_id(db, claim.subject)
        if user is not None:
            return user
        user = await self.store.find_by_email(db, claim.email)
        if user is None:
            raise DuplicateUserError(
                message="Could not resolve the account for this Google identity.",
                context={"reason": "conflict_without_winner"},
            )
        return await self._link(db, user, claim)


# ── Singleton Instance ────────────────────────────────────────────────────
account_linker = AccountLinker(store=user_store)
