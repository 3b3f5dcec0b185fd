"""
Notes Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session (no real DB needed)
    ├── db_session: real AsyncSession on a fresh in-memory SQLite database
    ├── make_user: inserts a User row into db_session
    ├── sent_mail: AsyncMock(spec=EmailSender) recording OTP deliveries
    ├── token_issuer: SessionTokenIssuer with the test secret
    └── test_client: HTTPX AsyncClient bound to the app, using db_session
"""

import os

# Override settings for testing BEFORE any app imports: app.config builds
# its singleton at import time.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["GOOGLE_CLIENT_ID"] = "test-client.apps.googleusercontent.com"
os.environ["SMTP_USERNAME"] = "notes@example.com"
os.environ["LOG_LEVEL"] = "WARNING"
# The app under test is shared by every route test; keep its limits out of the way
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["OTP_RATE_LIMIT_REQUESTS"] = "100"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db_session  # noqa: E402
from app.models import note as _note_model, user as _user_model  # noqa: E402,F401
from app.models.user import User  # noqa: E402
from app.services.email_base import EmailSender  # noqa: E402
from app.services.session_tokens import SessionTokenIssuer  # noqa: E402

TEST_JWT_SECRET = os.environ["JWT_SECRET"]


# ══════════════════════════════════════════════════════════════════════════
# Mocked collaborators
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_x(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sent_mail():
    """EmailSender double; inspect `sent_mail.send_otp.await_args`."""
    return AsyncMock(spec=EmailSender)


@pytest.fixture
def token_issuer():
    return SessionTokenIssuer(secret=TEST_JWT_SECRET)


# ══════════════════════════════════════════════════════════════════════════
# Real database (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    A session on a private in-memory database with all tables created.

    StaticPool keeps the single in-memory connection alive for the whole
    test, so every session sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_user(db_session):
    """
    Factory fixture inserting a user row.

    Usage:
        user = await make_user("ann@example.com", google_id="g1")
    """

    async def _make(email: str, **fields) -> User:
        user = User(email=email, **fields)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_session):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The request-scoped session dependency is replaced with the test's
    db_session, committing like production does after each request.
    """
    from app.main import app

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db_session, None)
