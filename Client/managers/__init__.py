"""
MusicSync Client - Managers Package

Contains manager classes for configuration and local persistence.

Author: MusicSync Project
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .local_store import LocalStore
from .app_data_manager import AppDataManager, APP_DATA_KEY, PLAY_COUNTS_KEY

__all__ = [
    'ConfigManager',
    'DEFAULT_CONFIG',
    'LocalStore',
    'AppDataManager',
    'APP_DATA_KEY',
    'PLAY_COUNTS_KEY'
]
