"""
Notes Backend — Session Token Issuer
=====================================

What:  Mints and validates the signed bearer tokens clients present to the
       note endpoints after signing in.
How:   JWT (python-jose) signed with one process-wide HMAC secret. Claims:
           sub  user id (string form of the UUID)
           iat  issued-at
           exp  issued-at + 7 days
       Stateless: no server-side session table, no revocation list.
Who:   issue() is called by verify-otp and google sign-in; validate() is
       called by the get_current_user_id dependency before any note access.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import settings
from app.exceptions import (
    ExpiredTokenError,
    InvalidTokenError,
    MissingTokenError,
    SigningError,
)
from app.models.user import User

logger = logging.getLogger(__name__)


class SessionTokenIssuer:
    """
    Issues and validates session tokens.

    Args:
        secret:    HMAC signing key. Read once from settings at startup.
        algorithm: Fixed signing algorithm (HS256 by default). Validation
                   accepts only this algorithm.
        ttl:       Token lifetime.
        clock:     Source of "now" for issuance.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self.clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def issue(self, user: User) -> str:
        """
        Mint a token for a user.

        Raises:
            SigningError: no secret configured, or signing failed.
        """
        if not self._secret:
            logger.critical("Session token requested but JWT_SECRET is not configured")
            raise SigningError(context={"reason": "secret_unset"})

        issued_at = self.clock()
        claims = {
            "sub": str(user.id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        try:
            token = jwt.encode(claims, self._secret, algorithm=self.algorithm)
        except JWTError as e:
            logger.error("Session token signing failed: %s", type(e).__name__)
            raise SigningError(context={"error_type": type(e).__name__}) from e

        logger.info("Issued session token for user %s", user.id)
        return token

    def validate(self, token: Optional[str]) -> str:
        """
        Verify a token's signature and expiry.

        Returns:
            The user id carried in the `sub` claim.

        Raises:
            MissingTokenError: no token supplied
            ExpiredTokenError: signature valid but past `exp`
            InvalidTokenError: bad signature, malformed, wrong algorithm,
                               or no subject
            SigningError:      no secret configured
        """
        if not token or not token.strip():
            raise MissingTokenError()
        if not self._secret:
            raise SigningError(context={"reason": "secret_unset"})

        try:
            claims = jwt.decode(
                token.strip(),
                self._secret,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_sub": True},
            )
        except ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except JWTError as e:
            logger.info("Session token rejected: %s", type(e).__name__)
            raise InvalidTokenError(context={"error_type": type(e).__name__}) from e

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError(context={"reason": "missing_sub"})
        return subject


# ── Singleton Instance ────────────────────────────────────────────────────
session_token_issuer = SessionTokenIssuer(
    secret=settings.jwt_secret,
    algorithm=settings.jwt_algorithm,
    ttl=timedelta(days=settings.session_token_ttl_days),
)
