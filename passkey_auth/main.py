"""
passkey-auth API - FastAPI Application

Main entry point for the FastAPI application.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from passkey_auth.config import get_settings
from passkey_auth.core.cache import close_redis
from passkey_auth.core.database import close_db, init_db
from passkey_auth.core.errors import CeremonyError
from passkey_auth.models.contracts.common import ErrorResponse
from passkey_auth.routers import auth_router, health_router, passkeys_router

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting passkey-auth API...")
    settings = get_settings()

    if settings.record_store_backend == "database":
        logger.info("Initializing database connection...")
        await init_db()
        logger.info("Database connection established")
    else:
        logger.warning("Using in-memory record store; records are lost on restart")

    if settings.session_store_backend == "memory":
        logger.warning("Using in-memory session store; sessions are not shared between workers")

    logger.info(
        f"passkey-auth API started in {settings.environment} mode "
        f"(rp_id={settings.webauthn_rp_id})"
    )

    yield

    logger.info("Shutting down passkey-auth API...")
    await close_redis()
    await close_db()
    logger.info("passkey-auth API shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="passkey-auth API",
        description="Passkey and password authentication ceremonies",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ==========================================================================
    # CORS Middleware
    # ==========================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==========================================================================
    # Global Exception Handlers
    # ==========================================================================

    @app.exception_handler(CeremonyError)
    async def ceremony_error_handler(request: Request, exc: CeremonyError) -> JSONResponse:
        """Structured ceremony failures -> their own status and code."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.code,
                message=exc.message,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies -> 422."""
        field_errors = {
            ".".join(str(loc) for loc in e["loc"]): e["msg"] for e in exc.errors()
        }
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error="validation_error",
                message="Validation failed",
                details={"fields": field_errors},
            ).model_dump(),
        )

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        """Database connection issues -> 503."""
        logger.error(f"Database operational error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content=ErrorResponse(
                error="service_unavailable",
                message="Service temporarily unavailable",
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions -> 500."""
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_error",
                message="An unexpected error occurred",
            ).model_dump(),
        )

    # ==========================================================================
    # Register Routers
    # ==========================================================================
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(passkeys_router)

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "name": "passkey-auth API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "passkey_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
