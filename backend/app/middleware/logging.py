"""
Guidepost Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request: method, path, status, duration.
How:   Measures from middleware entry to response return; the level follows
       the status class (5xx ERROR, 4xx WARNING, else INFO).
Who:   Applied to every request via Starlette middleware.

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, IP, request ID, platform user id
    ❌ Don't log: request bodies, the Authorization header, launch parameters
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("guidepost.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Health checks are not logged (probes every few seconds).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        # Set by the auth middleware, which runs inside this one
        identity = getattr(request.state, "identity", None)
        user_id = identity.platform_user_id if identity is not None else "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "platform_user_id": user_id,
            },
        )

        return response
