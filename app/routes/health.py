"""Health check endpoints for monitoring and readiness probes.

Provides endpoints to verify the API is running and dependencies are accessible.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends

from app import errors
from app.dependencies import get_summarizer
from app.services import database
from app.services.llm_client import ReadmeSummarizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check() -> dict:
    """Basic liveness check.

    Returns:
        Dictionary with status and timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().astimezone().isoformat(),
    }


@router.get("/health/ready")
def readiness_check(
    summarizer: ReadmeSummarizer = Depends(get_summarizer),
) -> dict:
    """Readiness check verifying database access and model credentials.

    Returns:
        Dictionary with status and individual check results.

    Raises:
        ServiceUnavailableError: If any dependency check fails.
    """
    checks = {}

    # Check MongoDB connection
    try:
        database.ping()
        checks["database"] = "ok"
    except Exception as e:
        logger.error("Database readiness check failed: %s", e)
        checks["database"] = f"error: {str(e)}"

    # Model credentials are only checked for presence (no API call)
    if summarizer.enabled:
        checks["llm"] = "ok"
    else:
        checks["llm"] = "error: missing API key"

    # Determine overall status
    all_ok = all(check == "ok" for check in checks.values())

    if not all_ok:
        raise errors.ServiceUnavailableError(status="not ready", checks=checks)

    return {
        "status": "ready",
        "checks": checks,
    }
