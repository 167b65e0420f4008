"""
Common response models.
"""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    message: str
    details: dict[str, Any] | None = None


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = "healthy"
    version: str = "1.0.0"
    record_store: str
    session_store: str


class StatusResponse(BaseModel):
    """Bare success indicator."""

    status: str = "success"
