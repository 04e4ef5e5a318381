"""
Guidepost Backend — Request ID Middleware
===========================================

What:  Assigns a correlation ID to each incoming request and returns it in
       the X-Request-ID response header.
How:   Uses the client's X-Request-ID when present, else a short UUID; stores
       it in a ContextVar (loggers, error bodies) and request.state (handlers).
When:  Just inside CORS and around rate limiting, logging and
       authentication, so every rejection already carries the ID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a unique ID to each request for tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")[:MAX_CLIENT_ID_LENGTH] or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
