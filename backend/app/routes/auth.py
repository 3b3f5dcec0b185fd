"""
Notes Backend — Authentication Route Handlers
==============================================

What:  POST /api/auth/send-otp, POST /api/auth/verify-otp, POST /api/auth/google,
       GET /api/auth/me.
How:   Each handler delegates to the services and, on success, issues a
       session token. Failures are raised as application exceptions and
       formatted by the global handlers in main.py.

Request Flow (verify-otp / google):
    body ──▶ OTPService.verify_challenge ─┐
    body ──▶ GoogleIdentityVerifier.verify ──▶ AccountLinker.resolve_or_create
                                          └──▶ SessionTokenIssuer.issue ──▶ {user, token}
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import (
    AuthResponse,
    AuthUser,
    ErrorResponse,
    GoogleLoginRequest,
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
)
from app.services.account_linker import account_linker
from app.services.google_identity import google_identity_verifier
from app.services.otp_service import otp_service
from app.services.session_tokens import session_token_issuer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _auth_response(user: User) -> AuthResponse:
    token = session_token_issuer.issue(user)
    return AuthResponse(user=AuthUser(email=user.email, name=user.name), token=token)


@router.post(
    "/send-otp",
    response_model=SendOTPResponse,
    responses={
        400: {"description": "Email missing", "model": ErrorResponse},
        429: {"description": "Too many OTP requests", "model": ErrorResponse},
        500: {"description": "Email delivery or storage failed", "model": ErrorResponse},
    },
    summary="Email a one-time passcode",
)
async def send_otp(
    body: SendOTPRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SendOTPResponse:
    """
    Generate a 6-digit code valid for 10 minutes, store it on the user
    (creating the user on first contact) and email it. Any earlier pending
    code for the same email stops working.
    """
    expires_in = await otp_service.request_challenge(db, body.email)
    return SendOTPResponse(expires_in=expires_in)


@router.post(
    "/verify-otp",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields, or invalid or expired OTP", "model": ErrorResponse},
        500: {"description": "Storage or signing failure", "model": ErrorResponse},
    },
    summary="Exchange a passcode for a session token",
)
async def verify_otp(
    body: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user = await otp_service.verify_challenge(db, body.email, body.otp)
    return _auth_response(user)


@router.post(
    "/google",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing, invalid or unusable Google token", "model": ErrorResponse},
        500: {"description": "Storage or signing failure", "model": ErrorResponse},
    },
    summary="Sign in or sign up with a Google ID token",
)
async def google_login(
    body: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """
    Verify the Google ID token, then resolve it to one account: by Google id
    first, then by email (linking an existing OTP account), else a new user.
    """
    claim = await google_identity_verifier.verify(body.token)
    user = await account_linker.resolve_or_create(db, claim)
    return _auth_response(user)


@router.get(
    "/me",
    response_model=AuthUser,
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Current signed-in user",
)
async def me(user: User = Depends(get_current_user)) -> AuthUser:
    return AuthUser(email=user.email, name=user.name)
