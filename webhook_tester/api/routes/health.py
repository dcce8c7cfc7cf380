# webhook_tester/api/routes/health.py
"""
Health route.
"""

import platform
from datetime import datetime, timezone

from fastapi import APIRouter

from webhook_tester.__version__ import __version__
from webhook_tester.core.config import config

router = APIRouter(prefix="/api", tags=["Health"])


@router.get(
    "/health",
    response_model=dict,
    summary="Health endpoint",
    description="Health check endpoint to verify the tester API is running",
)
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Status, timestamp and environment flags
    """
    return {
        "status": "ok",
        "message": "API is running",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "env": {
            "hasApiToken": config.has_api_token,
            "pythonVersion": platform.python_version(),
        },
    }
