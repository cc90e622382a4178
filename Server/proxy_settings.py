"""
MusicSync Proxy - Settings

Runtime configuration for the forwarding proxy. Values come from an
optional proxy_config.json next to the server; missing keys keep their
defaults.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path(__file__).parent / "proxy_config.json"


class ProxySettings(BaseModel):
    """Forwarding proxy configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)
    verify_upstream_ssl: bool = True
    cors_max_age: int = 86400
    log_level: str = "INFO"
    log_dir: str = "logs"


def LoadProxySettings(settings_file: Optional[Path] = None) -> ProxySettings:
    """
    Load proxy settings from JSON, falling back to defaults.

    Args:
        settings_file: Path to the JSON settings file (default: proxy_config.json)

    Returns:
        ProxySettings instance

    Raises:
        ValueError: If the file exists but is not valid settings JSON
    """
    settings_file = settings_file or DEFAULT_SETTINGS_FILE

    if not settings_file.exists():
        logger.debug(f"No proxy settings file at {settings_file}, using defaults")
        return ProxySettings()

    with open(settings_file, 'r', encoding='utf-8') as f:
        data = json.load(f)

    settings = ProxySettings.model_validate(data)
    logger.info(f"Loaded proxy settings from {settings_file}")
    return settings
