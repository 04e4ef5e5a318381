"""
Guidepost Backend — Error Response Rendering
==============================================

What:  Renders a GuidepostError as the standard JSON error body.
Who:   Global exception handlers (main.py) and middleware that must reject a
       request before routing (authentication, rate limiting), where
       FastAPI's exception handlers do not apply.

Body shape (see app/schemas/common.py ErrorResponse):
    {"error": <code>, "message": <text>, "details": {...}?, "request_id": <id>}
"""

from typing import Dict, Optional

from starlette.responses import JSONResponse

from app.exceptions import GuidepostError
from app.middleware.request_id import request_id_var


def error_response(
    exc: GuidepostError,
    *,
    message: Optional[str] = None,
    include_details: bool = False,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Build the JSON error response for `exc`.

    Args:
        exc: The application error; supplies status and error code.
        message: Override for the user-facing message (generic 5xx text).
        include_details: Expose exc.context. Only for client-fixable errors;
            server-side context stays in the logs.
        headers: Extra response headers (e.g. Retry-After).
    """
    content = {
        "error": exc.error_code,
        "message": message or exc.message,
        "request_id": request_id_var.get(""),
    }
    if include_details and exc.context:
        content["details"] = exc.context
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)
