"""
MusicSync Client - Server Error Exception

Exception raised for network failures, timeouts and unexpected responses
from the WebDAV store or the forwarding proxy.

Author: MusicSync Project
"""

from typing import Optional

from .api_error import MusicSyncAPIError


class MusicSyncServerError(MusicSyncAPIError):
    """Exception for server errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
