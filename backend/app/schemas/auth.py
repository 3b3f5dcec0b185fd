"""
Notes Backend — Authentication Schemas
=======================================

What:  Pydantic models for the /api/auth contract and the verified Google
       identity passed between services.
How:   FastAPI validates request bodies against the *Request models and
       serializes responses through the *Response models.

Request fields default to empty strings: a missing or blank field is a
business-rule ValidationError (400) raised by the service, not a schema
error, so every entry point reports it the same way.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SendOTPRequest(BaseModel):
    email: str = Field(default="", description="Address to send the passcode to")


class VerifyOTPRequest(BaseModel):
    email: str = Field(default="", description="Address the passcode was sent to")
    otp: str = Field(default="", description="Six-digit passcode from the email")


class GoogleLoginRequest(BaseModel):
    token: str = Field(default="", description="Google ID token (credential) from Sign-In")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SendOTPResponse(BaseModel):
    """Acknowledgement only. The code itself is never returned."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="OTP sent to your email successfully")
    expires_in: str = Field(serialization_alias="expiresIn", description="e.g. '10 minutes'")


class AuthUser(BaseModel):
    """Public view of a user: what the client stores next to its token."""

    email: str
    name: Optional[str] = None


class AuthResponse(BaseModel):
    """Returned by verify-otp and google once a session token is issued."""

    user: AuthUser
    token: str = Field(description="Bearer session token, valid for 7 days")


# ══════════════════════════════════════════════════════════════════════════
# Verified identity (service-level type)
# ══════════════════════════════════════════════════════════════════════════


class GoogleIdentityClaim(BaseModel):
    """
    Claims extracted from a Google ID token AFTER signature, issuer, audience
    and expiry checks passed.

    Only GoogleIdentityVerifier constructs this type; AccountLinker accepts
    nothing else. A raw token payload dict never reaches the linker.
    """

    model_config = ConfigDict(frozen=True)

    subject: str = Field(description="Google account id (`sub` claim)")
    email: str
    name: Optional[str] = None
    email_verified: bool = False


# ══════════════════════════════════════════════════════════════════════════
# Error Response Model
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for every endpoint.

    Example:
        {"error": "Invalid or expired OTP", "request_id": "a1b2c3d4"}
    """

    error: str = Field(description="Human-readable error description")
    details: Optional[str] = Field(default=None, description="Extra guidance, when any")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
