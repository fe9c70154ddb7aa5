"""FastAPI application for the GitHub repository summarizer.

Serves account and API-key management for the dashboard, and the
API-key-gated summarizer endpoint.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import errors
from app.config import get_settings
from app.dependencies import get_credential_store, get_github_client
from app.routes import api_keys, auth, health, summarize
from app.services import database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifespan context manager for startup and shutdown events.

    Handles:
    - Startup: Initialise MongoDB connection and ensure indexes
    - Shutdown: Close HTTP and MongoDB connections gracefully

    Args:
        fastapi_app: FastAPI application instance.

    Yields:
        Control back to FastAPI during application lifetime.
    """
    # Startup
    logger.info("Starting repository summarizer service...")

    # Load app
    _ = fastapi_app

    # Load settings
    _ = get_settings()

    try:
        # Initialise database connection
        database.get_client()
        logger.info("MongoDB connection initialised")

        # Ensure database indexes exist
        get_credential_store().ensure_indexes()
        logger.info("Database indexes verified")

        logger.info("Application startup complete")

    except Exception as e:
        logger.error("Failed to initialise application: %s", e, exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down application...")
    try:
        get_github_client().close()
        database.close_client()
    except Exception as e:
        logger.error("Error during shutdown: %s", e, exc_info=True)

    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="GitHub Repository Summarizer",
    description=(
        "API key management and LLM-backed summaries of public GitHub "
        "repositories"
    ),
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(errors.AppError)
async def app_error_handler(request: Request, exc: errors.AppError):
    """Render application errors as JSON error envelopes."""
    if exc.status_code >= 500:
        logger.warning(
            "%s %s failed with %d: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 errors."""
    logger.debug("Invalid request for %s %s: %s", request.method, request.url, exc)
    error = errors.ValidationError(
        "Request body must be valid JSON matching the expected fields",
        error="Invalid request body",
        details=str(exc.errors()),
    )
    return JSONResponse(status_code=error.status_code, content=error.to_content())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions globally.

    Args:
        request: FastAPI request object.
        exc: Exception that was raised.

    Returns:
        JSON response with error details.
    """
    logger.error(
        "Unhandled exception for %s %s: %s",
        request.method,
        request.url,
        exc,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "details": str(exc),
        },
    )


# Register routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(api_keys.router)
app.include_router(summarize.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information.

    Returns:
        Dictionary with API details and links.
    """
    return {
        "service": "GitHub Repository Summarizer",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "readiness": "/health/ready",
            "signup": "POST /auth/signup",
            "login": "POST /auth/login",
            "verify": "POST /auth/verify",
            "api_keys": "GET|POST /api-keys, GET|PUT|DELETE /api-keys/{id}",
            "summarize": "POST /summarize",
            "docs": "/docs",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
