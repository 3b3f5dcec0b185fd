"""
Notes Backend — Request Logging Middleware
===========================================

What:  One access-log line per HTTP request.
How:   Times the request from middleware entry to response return and logs
       `<group> <method> <path> -> <status> (<ms>) rid=<id> ip=<addr>`.

Levels:
    5xx                      ERROR
    401 / 429                WARNING (rejected credentials, throttling)
    other 4xx                INFO    (ordinary client mistakes)
    everything else          INFO

Never logged: request bodies (emails, OTP codes, Google ID tokens, note
content) and the Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("notes.access")

QUIET_PATHS = {"/health"}


def route_group(path: str) -> str:
    """Coarse bucket for the access log: auth, notes or other."""
    if path.startswith("/api/auth"):
        return "auth"
    if path.startswith("/api/notes"):
        return "notes"
    return "other"


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status in (401, 429):
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes the access log; quiet paths are passed straight through."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        rid = request_id_var.get("")
        ip = request.client.host if request.client else "unknown"
        group = route_group(path)
        logger.log(
            level_for_status(response.status_code),
            "%s %s %s -> %d (%.1fms) rid=%s ip=%s",
            group,
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            rid,
            ip,
            extra={
                "request_id": rid,
                "route_group": group,
                "status": response.status_code,
                "duration_ms": round(elapsed_ms, 2),
            },
        )
        return response
