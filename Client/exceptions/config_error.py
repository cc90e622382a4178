"""
MusicSync Client - Configuration Error Exception

Exception raised when config.json holds a value the client cannot use.

Author: MusicSync Project
"""

from .api_error import MusicSyncAPIError


class MusicSyncConfigError(MusicSyncAPIError):
    """Exception for invalid client configuration."""
    pass
