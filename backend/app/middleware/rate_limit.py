"""
Guidepost Backend — Rate Limiting Middleware
==============================================

What:  Per-IP sliding window rate limiter.
How:   Tracks request timestamps per IP in memory; rejects with 429 once the
       window holds `rate_limit_requests` entries.
When:  Just inside request ID assignment, so rejected traffic never reaches
       signature verification or the database but its 429 carries the ID.

Algorithm: Sliding Window Log
    1. Each IP gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429 and Retry-After
    4. Otherwise, record the current timestamp and pass the request on

State is per process: with several workers each enforces its own limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.responses import error_response

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings):
        rate_limit_requests: Max requests per window
        rate_limit_window: Window duration in seconds
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        now = time.time()
        window_start = now - settings.rate_limit_window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                settings.rate_limit_window,
            )
            return error_response(
                RateLimitExceededError(retry_after=retry_after),
                include_details=True,
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)

        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs with no request inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
