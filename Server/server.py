"""
MusicSync Proxy - Main FastAPI Application

This module contains the main FastAPI application for the MusicSync
forwarding proxy. It lets browser-confined clients reach third-party
HTTP(S)/WebDAV stores despite same-origin restrictions.
"""

import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
import uvicorn

from forwarder import CreateUpstreamClient
from proxy_settings import LoadProxySettings, ProxySettings
from version import PROXY_VERSION


logger = logging.getLogger(__name__)


# ==================== Logging ====================

def ConfigureLogging(settings: ProxySettings) -> Path:
    """
    Configure logging to write to both console and a rotating file

    Args:
        settings: Proxy settings (log directory and level)

    Returns:
        Path to the log file
    """
    logs_dir = Path(settings.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_filename = logs_dir / f"musicsync-proxy-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            # Console handler
            logging.StreamHandler(),
            # File handler with rotation (max 10MB per file, keep 10 backup files)
            RotatingFileHandler(
                log_filename,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=10,
                encoding='utf-8'
            )
        ]
    )
    return log_filename


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Creates and closes the shared upstream HTTP client
    """
    # Startup
    settings: Optional[ProxySettings] = getattr(app.state, "settings", None)
    if settings is None:
        settings = LoadProxySettings()
        app.state.settings = settings

    log_file = ConfigureLogging(settings)
    logger.info(f"MusicSync Proxy starting up (log file: {log_file})")

    app.state.upstream_client = CreateUpstreamClient(
        settings.upstream_timeout_seconds,
        settings.verify_upstream_ssl
    )
    logger.info(f"Upstream client ready (timeout: {settings.upstream_timeout_seconds}s, "
                f"verify SSL: {settings.verify_upstream_ssl})")

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("MusicSync Proxy shutting down...")
    await app.state.upstream_client.aclose()
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

app = FastAPI(
    title="MusicSync Proxy",
    description="CORS forwarding proxy for WebDAV music library sync",
    version=PROXY_VERSION,
    lifespan=lifespan
)

# The proxy route sets its own CORS headers; no CORSMiddleware.


# ==================== Import Routers ====================

from routes import status, proxy


# ==================== Include Routers ====================

app.include_router(status.router)
app.include_router(proxy.router)


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    """
    Run the server using uvicorn
    """
    settings = LoadProxySettings()

    uvicorn.run(
        "server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower()
    )
