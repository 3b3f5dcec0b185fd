"""
Notes Backend — Rate Limiting Middleware
=========================================

What:  Per-IP sliding-window rate limits.
How:   Each rule keeps a list of request timestamps per client IP. On every
       request, timestamps older than the rule's window are dropped; if the
       remaining count has reached the limit the request is answered with
       429 and `Retry-After`, otherwise the timestamp is recorded.

Rules:
    global    every path except health/docs   rate_limit_requests / rate_limit_window
    send-otp  POST /api/auth/send-otp         otp_rate_limit_requests / otp_rate_limit_window

State is in-process memory: limits apply per worker process.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


@dataclass
class SlidingWindow:
    """Request timestamps per client for one rule."""

    limit: int
    window: int  # seconds
    hits: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def check(self, client: str, now: float) -> Optional[int]:
        """Record a hit, or return seconds until the client may retry."""
        window_start = now - self.window
        recent = [ts for ts in self.hits[client] if ts > window_start]
        if len(recent) >= self.limit:
            self.hits[client] = recent
            return int(recent[0] + self.window - now) + 1
        recent.append(now)
        self.hits[client] = recent
        return None

    def prune(self, now: float) -> int:
        window_start = now - self.window
        inactive = [ip for ip, stamps in self.hits.items() if not stamps or stamps[-1] <= window_start]
        for ip in inactive:
            del self.hits[ip]
        return len(inactive)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window rate limiter."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}
    OTP_PATH = "/api/auth/send-otp"
    CLEANUP_EVERY = 1000

    def __init__(self, app, clock: Callable[[], float] = time.time, **kwargs):
        super().__init__(app, **kwargs)
        self.clock = clock
        self.global_rule = SlidingWindow(settings.rate_limit_requests, settings.rate_limit_window)
        self.otp_rule = SlidingWindow(settings.otp_rate_limit_requests, settings.otp_rate_limit_window)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = self.clock()

        retry_after = self.global_rule.check(client_ip, now)
        if retry_after is None and request.method == "POST" and path == self.OTP_PATH:
            retry_after = self.otp_rule.check(client_ip, now)

        if retry_after is not None:
            logger.warning("Rate limit exceeded for IP %s on %s", client_ip, path)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "Too many requests",
                    "details": f"Please wait {retry_after} seconds before retrying.",
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            removed = self.global_rule.prune(now) + self.otp_rule.prune(now)
            if removed:
                logger.debug("Cleaned up %d inactive IP entries", removed)

        return await call_next(request)
