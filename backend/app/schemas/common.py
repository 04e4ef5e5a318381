"""
Guidepost Backend — Shared Response Schemas
=============================================

What:  Error, health and identity response models shared by all routers.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "unauthorized", "signature_expired")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "signature_expired",
            "message": "Authorization failed, signature expired",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer health checks."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    strict_mode: bool = Field(description="Whether signature freshness is enforced")
    uptime_seconds: float = Field(description="Seconds since service started")


class IdentityResponse(BaseModel):
    """The caller as established by launch-parameter authentication."""
    platform_user_id: int = Field(description="User id on the hosting platform")
    issued_at: datetime = Field(description="When the launch parameters were signed (UTC)")
    params: Dict[str, str] = Field(description="All launch parameters (signature excluded)")
