"""
Notes Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for every failure the service can report.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching HTTP status.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    NotesAppError (base)
    ├── ValidationError                   → 400 Bad Request
    ├── AuthChallengeError                → 400 Bad Request
    │   ├── ChallengeNotFoundError
    │   └── InvalidOrExpiredChallengeError
    ├── IdentityVerificationError         → 400 Bad Request
    │   ├── InvalidGoogleTokenError
    │   └── MissingPayloadError
    ├── SessionTokenError                 → 401 Unauthorized
    │   ├── MissingTokenError
    │   ├── InvalidTokenError
    │   └── ExpiredTokenError
    ├── NotFoundError                     → 404 Not Found
    ├── PersistenceError                  → 500 Internal Server Error
    │   └── DuplicateUserError
    ├── DeliveryError                     → 500 Internal Server Error
    └── ConfigurationError                → 500 (fatal at startup)
        └── SigningError

The two AuthChallengeError subclasses share one public message. Callers
cannot tell "no such user" from "wrong code", which keeps the OTP endpoint
from confirming which email addresses have accounts.
"""

from typing import Any, Dict, Optional


class NotesAppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotesAppError):
    """
    Raised when client input fails validation.

    When:    Missing or blank required fields (email, otp, token, content).
    HTTP:    400 Bad Request. No side effects have happened when it is raised.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


# ══════════════════════════════════════════════════════════════════════════
# OTP challenge failures
# ══════════════════════════════════════════════════════════════════════════

class AuthChallengeError(NotesAppError):
    """
    Raised when an OTP verification attempt fails.

    HTTP:    400 Bad Request, always with the same message.
    """

    PUBLIC_MESSAGE = "Invalid or expired OTP"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=self.PUBLIC_MESSAGE, context=context)


class ChallengeNotFoundError(AuthChallengeError):
    """No user record exists for the supplied email."""


class InvalidOrExpiredChallengeError(AuthChallengeError):
    """Stored code does not match, is absent, or its expiry has passed."""


# ══════════════════════════════════════════════════════════════════════════
# Google identity failures
# ══════════════════════════════════════════════════════════════════════════

class IdentityVerificationError(NotesAppError):
    """
    Raised when a Google ID token cannot be trusted.

    HTTP:    400 Bad Request. Logged server-side with the exception type only.
    """


class InvalidGoogleTokenError(IdentityVerificationError):
    """Signature, issuer, audience or expiry verification failed."""

    def __init__(
        self,
        message: str = "Invalid Google token",
        details: str = "Token verification failed. Please try signing in again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.details = details


class MissingPayloadError(IdentityVerificationError):
    """Verification succeeded but produced no usable claims."""

    def __init__(
        self,
        message: str = "Invalid token payload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Session token failures
# ══════════════════════════════════════════════════════════════════════════

class SessionTokenError(NotesAppError):
    """
    Raised by the session token gate in front of note endpoints.

    HTTP:    401 Unauthorized with `WWW-Authenticate: Bearer`.
    """


class MissingTokenError(SessionTokenError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Access denied", context=context)


class InvalidTokenError(SessionTokenError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid token", context=context)


class ExpiredTokenError(SessionTokenError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Token expired", context=context)


# ══════════════════════════════════════════════════════════════════════════
# Resources and infrastructure
# ══════════════════════════════════════════════════════════════════════════

class NotFoundError(NotesAppError):
    """
    Raised when a requested resource does not exist.

    When:    PUT/DELETE /api/notes/{id} for a note that is absent or belongs
             to another user (the two cases are indistinguishable to callers).
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class PersistenceError(NotesAppError):
    """
    Raised when a user-record or note store operation fails.

    HTTP:    500 Internal Server Error. The client-facing message is always
             generic; constraint names and SQL stay in the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateUserError(PersistenceError):
    """A concurrent request created the same email or Google id first."""


class DeliveryError(NotesAppError):
    """
    Raised when the OTP email could not be handed to the mail server.

    HTTP:    500 Internal Server Error. The OTP is never included.
    """

    def __init__(
        self,
        message: str = "Failed to send OTP",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(NotesAppError):
    """
    Raised when required configuration (signing secret, Google client id)
    is absent. Fatal during startup; a 500 if it ever surfaces per-request.
    """

    def __init__(
        self,
        message: str = "Server is not configured correctly",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SigningError(ConfigurationError):
    """A session token could not be signed."""

    def __init__(
        self,
        message: str = "Failed to generate authentication token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
