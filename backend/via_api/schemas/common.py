"""
VIA Backend — Shared Response Schemas
=======================================
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    What:  Standardized error envelope for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Missing required fields: title, points",
            "details": {"fields": ["title", "points"]},
            "request_id": "a1b2c3d4"
        }

    For storage errors `details` carries the raw collaborator text and is
    present only when EXPOSE_ERROR_DETAILS is enabled.
    """
    error: str = Field(description="Short error label")
    message: str = Field(description="Human-readable error description")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
