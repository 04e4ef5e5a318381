"""
Guidepost Backend — Launch Parameter Authentication Middleware
================================================================

What:  Authenticates every request from its signed launch parameters.
How:   Reads the Authorization header, runs AuthenticationGate, and publishes
       the resulting VerifiedIdentity for downstream handlers.
Who:   Applied to every request via Starlette middleware.
When:  After request ID assignment, before routing. The only trust boundary
       of the service: handlers assume identity is already established.

Published identity (the well-known keys):
    - request.state.identity        for route handlers (see get_identity)
    - identity_var (ContextVar)     for services and loggers

Bypassed:
    - Paths matching the configured exempt prefixes (docs, health)
    - CORS preflight (OPTIONS), which browsers send without credentials

Rejection is immediate: the standard error JSON with 401, no handler runs.
"""

import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.exceptions import AuthenticationError
from app.middleware.request_id import request_id_var
from app.responses import error_response
from app.services.auth_service import (
    AuthenticationGate,
    VerifiedIdentity,
    extract_credential,
)

logger = logging.getLogger(__name__)

identity_var: ContextVar[Optional[VerifiedIdentity]] = ContextVar("identity", default=None)

AUTH_HEADER = "Authorization"


class LaunchParamsAuthMiddleware(BaseHTTPMiddleware):
    """
    Runs the authentication gate once per request.

    Args:
        gate: Constructed at startup from the immutable AuthConfig.
    """

    def __init__(self, app, gate: AuthenticationGate):
        super().__init__(app)
        self.gate = gate

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS" or self.gate.is_exempt(request.url.path):
            return await call_next(request)

        try:
            credential = extract_credential(request.headers.get(AUTH_HEADER))
            identity = self.gate.authenticate(credential, now=datetime.now(timezone.utc))
        except AuthenticationError as exc:
            logger.debug(
                "[%s] Authentication rejected for %s %s: %s",
                request_id_var.get(""),
                request.method,
                request.url.path,
                exc.error_code,
            )
            return error_response(exc)

        request.state.identity = identity
        token = identity_var.set(identity)
        try:
            return await call_next(request)
        finally:
            identity_var.reset(token)


def get_identity(request: Request) -> VerifiedIdentity:
    """
    FastAPI dependency returning the caller's VerifiedIdentity.

    Raises:
        AuthenticationError: The route is exempt or the middleware is not
            installed, so no identity was published.
    """
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise AuthenticationError(message="Authorization required")
    return identity
