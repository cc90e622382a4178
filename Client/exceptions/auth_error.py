"""
MusicSync Client - Authentication Error Exception

Exception raised when the WebDAV store rejects the configured credentials.

Author: MusicSync Project
"""

from .api_error import MusicSyncAPIError


class MusicSyncAuthError(MusicSyncAPIError):
    """Exception for authentication errors."""
    pass
