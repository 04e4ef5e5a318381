"""
Guidepost Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and middleware; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    GuidepostError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    │   └── SignatureExpiredError → 401 Unauthorized (re-sign and retry)
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    └── AggregationTimeoutError  → 504 Gateway Timeout

InvalidSignatureError (app/security/launch_params.py) is deliberately NOT part
of this tree: it never reaches a handler. The authentication gate converts it
into AuthenticationError.
"""

from typing import Any, Dict, Optional


class GuidepostError(Exception):
    """
    Base exception for all Guidepost application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(GuidepostError):
    """
    Raised when client input fails a business rule.

    HTTP:    400 Bad Request
    When:    Search query too short, name/description too short on create.
    Schema-level problems (bad UUID in a path) are FastAPI's 422.
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(GuidepostError):
    """
    Raised when the caller's launch parameters cannot be trusted.

    What:    Missing credential, forged/malformed signature, or a signed
             parameter set lacking the user id or timestamp.
    HTTP:    401 Unauthorized
    Never retried by the client as-is: the same credential fails the same way.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authorization failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SignatureExpiredError(AuthenticationError):
    """
    Valid signature, stale timestamp (strict mode only).

    HTTP:    401 Unauthorized, error code `signature_expired`
    The distinct code tells the client to obtain fresh launch parameters
    and retry, instead of treating the user as an impostor.
    """

    error_code = "signature_expired"

    def __init__(
        self,
        age_seconds: int,
        max_age_seconds: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["age_seconds"] = age_seconds
        ctx["max_age_seconds"] = max_age_seconds
        super().__init__(message="Authorization failed, signature expired", context=ctx)
        self.age_seconds = age_seconds
        self.max_age_seconds = max_age_seconds


class ForbiddenError(GuidepostError):
    """
    Authenticated caller lacks the right to perform the action.

    HTTP:    403 Forbidden
    When:    Editing a route of a company the caller does not own, creating a
             company-less route without admin rights.
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You don't have access to this method",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GuidepostError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    Also the per-reference signal inside ReferenceResolver, where it is
    absorbed and the reference is dropped from the composite.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(GuidepostError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error
    The message returned to the client is always generic. Details (SQL,
    constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AggregationTimeoutError(GuidepostError):
    """
    Resolving a route's place/event references exceeded its deadline.

    HTTP:    504 Gateway Timeout
    The read fails as a whole; a partially resolved route is never returned.
    """

    status_code = 504
    error_code = "aggregation_timeout"

    def __init__(
        self,
        timeout_seconds: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout_seconds"] = timeout_seconds
        super().__init__(
            message="Loading the route took too long. Please try again.",
            context=ctx,
        )
        self.timeout_seconds = timeout_seconds


class RateLimitExceededError(GuidepostError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
