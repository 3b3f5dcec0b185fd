"""
Notes Backend — Google Identity Verifier
=========================================

What:  Turns an untrusted Google ID token into a trusted GoogleIdentityClaim.
How:   Delegates signature, issuer, audience and expiry checks to
       google-auth's `id_token.verify_oauth2_token`, which fetches and caches
       Google's public certificates. The blocking call runs in a worker thread.
Who:   Called by POST /api/auth/google before any account lookup.

Trust boundary:
    The token payload is only read after verification returns. The claim
    type produced here is the only input AccountLinker accepts.
"""

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional

import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import id_token

from app.config import settings
from app.exceptions import (
    ConfigurationError,
    InvalidGoogleTokenError,
    MissingPayloadError,
    ValidationError,
)
from app.schemas.auth import GoogleIdentityClaim
from app.services.user_store import normalize_email

logger = logging.getLogger(__name__)

# (token, request, audience) -> payload
VerifyFunction = Callable[[str, Any, str], Optional[Mapping[str, Any]]]


class GoogleIdentityVerifier:
    """
    Verifies Google Sign-In ID tokens for one OAuth client id.

    Args:
        client_id: Expected `aud` claim (this application's OAuth client id).
        require_verified_email: Reject identities whose email Google has not
            verified. Linking relies on the email being owned by the holder.
        verify_fn: Verification primitive; defaults to google-auth.
        transport: HTTP transport used to fetch Google's certificates.
    """

    def __init__(
        self,
        client_id: str,
        require_verified_email: bool = True,
        verify_fn: VerifyFunction = id_token.verify_oauth2_token,
        transport: Optional[Any] = None,
    ):
        self.client_id = client_id
        self.require_verified_email = require_verified_email
        self.verify_fn = verify_fn
        self.transport = transport or google.auth.transport.requests.Request()

    async def verify(self, token: str) -> GoogleIdentityClaim:
        """
        Verify a Google ID token and extract its identity claims.

        Returns:
            GoogleIdentityClaim with subject, normalized email, name and the
            email-verified flag.

        Raises:
            ValidationError:        token missing or blank
            ConfigurationError:     no Google client id configured
            InvalidGoogleTokenError: verification raised (forged, expired,
                                    wrong audience/issuer, cert fetch failure)
            MissingPayloadError:    verification passed but the payload has no
                                    usable subject/email
        """
        token = (token or "").strip()
        if not token:
            raise ValidationError("No token provided", field="token")
        if not self.client_id:
            raise ConfigurationError(message="Google sign-in is not configured")

        try:
            payload = await asyncio.to_thread(
                self.verify_fn, token, self.transport, self.client_id
            )
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            # Diagnostics only: never log the token itself
            logger.warning(
                "Google token verification failed: %s: %s", type(e).__name__, str(e)
            )
            raise InvalidGoogleTokenError(context={"error_type": type(e).__name__}) from e

        return self._claim_from_payload(payload)

    def _claim_from_payload(self, payload: Optional[Mapping[str, Any]]) -> GoogleIdentityClaim:
        if not payload:
            logger.warning("Google token verified but carried no payload")
            raise MissingPayloadError()

        subject = str(payload.get("sub") or "").strip()
        email = normalize_email(payload.get("email"))
        if not subject or not email:
            logger.warning(
                "Google token payload missing %s",
                "sub" if not subject else "email",
            )
            raise MissingPayloadError(context={"has_sub": bool(subject), "has_email": bool(email)})

        email_verified = _as_bool(payload.get("email_verified"))
        if self.require_verified_email and not email_verified:
            logger.warning("Google identity %s... rejected: email not verified", subject[:6])
            raise InvalidGoogleTokenError(
                details="The Google account's email address is not verified.",
                context={"reason": "email_not_verified"},
            )

        claim = GoogleIdentityClaim(
            subject=subject,
            email=email,
            name=payload.get("name") or None,
            email_verified=email_verified,
        )
        logger.info("Google identity verified for subject %s...", subject[:6])
        return claim


def _as_bool(value: Any) -> bool:
    # Some issuers encode email_verified as the string "true"
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


# ── Singleton Instance ────────────────────────────────────────────────────
google_identity_verifier = GoogleIdentityVerifier(
    client_id=settings.google_client_id,
    require_verified_email=settings.google_require_verified_email,
)
