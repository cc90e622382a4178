"""
MusicSync Proxy - Status Endpoints

This module contains the health check endpoint used by deployments and
clients to verify the proxy is running.
"""

from datetime import datetime, timezone
from fastapi import APIRouter

from version import PROXY_VERSION


# Create router instance
router = APIRouter()


# ==================== Health Check Endpoint ====================

@router.get("/health", tags=["Status"])
async def health_check():
    """
    Health check endpoint to verify server is running

    Returns:
        dict: Server status information
    """
    return {
        "status": "healthy",
        "service": "MusicSync Proxy",
        "version": PROXY_VERSION,
        "timestamp_utc": datetime.now(timezone.utc).isoformat()
    }
