"""
Health Check Router

Liveness endpoint for monitoring and load balancers. Reports which record and
session store backends the process was started with.
"""

from fastapi import APIRouter

from passkey_auth.config import get_settings
from passkey_auth.models.contracts.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        record_store=settings.record_store_backend,
        session_store=settings.session_store_backend,
    )
