"""
Notes Backend — Health Check Route
===================================

What:  GET /health for container health checks and load balancers.
How:   Pings the database and reports whether sign-in can work at all
       (signing secret and Google client id present). Either failing makes
       the service "unhealthy"; the endpoint itself always answers 200.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app import __version__
from app.config import settings
from app.database import engine
from app.schemas.note import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

STARTED_AT = time.monotonic()


async def _database_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", type(e).__name__)
        return False
    return True


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    db_ok = await _database_reachable()
    auth_ok = bool(settings.jwt_secret and settings.google_client_id)

    return HealthResponse(
        status="healthy" if db_ok and auth_ok else "unhealthy",
        version=__version__,
        database="connected" if db_ok else "disconnected",
        auth="configured" if auth_ok else "unconfigured",
        uptime_seconds=round(time.monotonic() - STARTED_AT, 2),
    )
