"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.errors import (
    AuthorizationError,
    ConfigurationError,
    InvariantViolation,
    SweepAlreadyRunning,
    SweepFailed,
    TransientStoreError,
)
from app.core.logging import setup_logging

setup_logging(settings)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Recurring training schedules, session lifecycle and daily maintenance.",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json")

# Include API router
app.include_router(api_router, prefix="/api/v1")


# ----------------------------------------------------------------------
# Error contract
# ----------------------------------------------------------------------


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError):
    logger.warning("Rejected maintenance trigger from %s: %s", request.client.host if request.client else "?", exc)
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={ "error": "Unauthorized" })


@app.exception_handler(SweepFailed)
async def sweep_failed_handler(request: Request, exc: SweepFailed):
    logger.error("Maintenance sweep failed in %s: %s", exc.phase, exc.original_error)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={ "error": "Failed to generate sessions", "details": str(exc.original_error) })


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={ "error": "Missing configuration", "details": str(exc) })


@app.exception_handler(SweepAlreadyRunning)
async def sweep_running_handler(request: Request, exc: SweepAlreadyRunning):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT,
                        content={ "error": "Maintenance already running", "details": str(exc) })


@app.exception_handler(TransientStoreError)
async def store_error_handler(request: Request, exc: TransientStoreError):
    logger.error("Store operation %s failed: %s", exc.operation, exc.original_error)
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                        content={ "error": "Store unavailable", "details": exc.operation })


@app.exception_handler(InvariantViolation)
async def invariant_violation_handler(request: Request, exc: InvariantViolation):
    logger.critical("Invariant violated: %s", exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        content={ "error": "Data invariant violated", "details": str(exc) })


# ----------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "session-engine",
        "version": settings.VERSION,
        "database_configured": settings.database_configured,
    }
