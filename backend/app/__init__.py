"""
Notes Backend — Application Package Initializer
================================================

What: The `app` package: authentication core and notes API.
Who:  Imported by uvicorn (`app.main:app`) and by pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes + Dependencies (HTTP)      │  ← status codes, bearer gate
    ├─────────────────────────────────────┤
    │   Services (Auth + Notes logic)     │  ← OTP, Google linking, tokens
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (Persistence)            │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
