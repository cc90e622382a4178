"""
MusicSync Client - Configuration Manager

Handles loading, validating and saving client configuration from/to
config.json. WebDAV credentials are not kept here; they live in the
application settings held by the local store.

Author: MusicSync Project
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from urllib.parse import urlparse

from exceptions import MusicSyncConfigError

# Configure logging
logger = logging.getLogger(__name__)


# Default configuration values
DEFAULT_CONFIG = {
    "proxy_url": None,  # e.g. "http://localhost:8000"; None talks to WebDAV directly
    "verify_ssl": True,
    "store_path": "data/musicsync.db",
    "log_level": "INFO",
    "log_retention_days": 30
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def normalize_proxy_url(value: Any) -> Optional[str]:
    """
    Validate a forwarding proxy base URL.

    Args:
        value: URL such as "http://localhost:8000/", or None/"" for no proxy

    Returns:
        URL without trailing slash, or None

    Raises:
        MusicSyncConfigError: If the URL is not an absolute http(s) URL
                              without query or fragment
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise MusicSyncConfigError(f"proxy_url must be a string, got {type(value).__name__}")

    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise MusicSyncConfigError(f"proxy_url must be an http(s) URL: {value!r}")
    if parsed.query or parsed.fragment:
        raise MusicSyncConfigError(f"proxy_url must not have a query or fragment: {value!r}")

    return value.strip().rstrip("/")


class ConfigManager:
    """
    Manages client configuration.

    Responsibilities:
    - Load/save config.json next to the executable (same location as logs folder)
    - Validate and normalize known settings
    - Provide configuration values to other modules
    """

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            base_dir: Directory holding config.json (default: executable or working directory)
        """
        if base_dir is None:
            if getattr(sys, 'frozen', False):
                # Running as compiled executable
                base_dir = Path(sys.executable).parent
            else:
                # Running as script
                base_dir = Path.cwd()

        self.config_file = Path(base_dir) / "config.json"
        self.config: Dict[str, Any] = {}

    def load_config(self) -> Dict[str, Any]:
        """
        Load and validate configuration from config.json.
        Creates default config if file doesn't exist.

        Returns:
            Configuration dictionary

        Raises:
            MusicSyncConfigError: If the file is not a JSON object or holds invalid values
        """
        if not self.config_file.exists():
            logger.info(f"Configuration file not found, creating default at {self.config_file}")
            self.config = DEFAULT_CONFIG.copy()
            self.save_config()
            return self.config

        logger.debug(f"Loading configuration from {self.config_file}")
        try:
            with open(self.config_file, 'r') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise MusicSyncConfigError(f"{self.config_file} is not valid JSON: {e}")

        if not isinstance(loaded, dict):
            raise MusicSyncConfigError(f"{self.config_file} must contain a JSON object")

        # Missing keys take their defaults
        merged = {**DEFAULT_CONFIG, **loaded}
        self.config = {key: self.validate_value(key, value) for key, value in merged.items()}
        logger.info("Configuration loaded successfully")
        return self.config

    def save_config(self):
        """Save current configuration to config.json."""
        logger.debug(f"Saving configuration to {self.config_file}")
        with open(self.config_file, 'w') as f:
            json.dump(self.config, f, indent=2)

    @staticmethod
    def validate_value(key: str, value: Any) -> Any:
        """
        Validate one configuration value.

        Args:
            key: Configuration key
            value: Raw value

        Returns:
            Normalized value (unknown keys are returned unchanged)

        Raises:
            MusicSyncConfigError: If the value is not acceptable for the key
        """
        if key == "proxy_url":
            return normalize_proxy_url(value)

        if key == "verify_ssl":
            if not isinstance(value, bool):
                raise MusicSyncConfigError(f"verify_ssl must be true or false, got {value!r}")
            return value

        if key == "store_path":
            if not isinstance(value, str) or not value.strip():
                raise MusicSyncConfigError("store_path must be a non-empty path")
            return value

        if key == "log_level":
            if not isinstance(value, str) or value.upper() not in LOG_LEVELS:
                raise MusicSyncConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
            return value.upper()

        if key == "log_retention_days":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MusicSyncConfigError(f"log_retention_days must be a whole number >= 0, got {value!r}")
            return value

        return value

    def get(self, key: str, default=None) -> Any:
        """
        Get configuration value.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """
        Validate and set configuration value, then save to file.

        Args:
            key: Configuration key
            value: Configuration value

        Raises:
            MusicSyncConfigError: If the value is invalid (nothing is saved)
        """
        self.config[key] = self.validate_value(key, value)
        self.save_config()
