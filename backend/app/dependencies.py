"""
Notes Backend — Authentication Dependencies
============================================

What:  The gate in front of every note endpoint.
How:   Reads `Authorization: Bearer <token>`, validates it with the session
       token issuer, and hands the route the caller's user id. Any missing,
       malformed, non-Bearer, forged or expired credential raises a
       SessionTokenError (401); there is no anonymous fallback.
Who:   Declared with Depends() on note routes.
"""

import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import InvalidTokenError, MissingTokenError
from app.models.user import User
from app.services.session_tokens import session_token_issuer
from app.services.user_store import user_store

bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> uuid.UUID:
    """Validate the bearer token and return the user id it carries."""
    if creds is None:
        raise MissingTokenError()
    if (creds.scheme or "").lower() != "bearer":
        raise InvalidTokenError(context={"reason": "scheme"})

    subject = session_token_issuer.validate(creds.credentials)
    try:
        return uuid.UUID(subject)
    except ValueError:
        raise InvalidTokenError(context={"reason": "malformed_sub"})


async def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Like get_current_user_id, but also requires the user row to exist."""
    user = await user_store.find_by_id(db, user_id)
    if user is None:
        raise InvalidTokenError(context={"reason": "unknown_user"})
    return user
