"""
MusicSync Client - Not Found Error Exception

Exception raised when a remote file or collection does not exist.

Author: MusicSync Project
"""

from .server_error import MusicSyncServerError


class MusicSyncNotFoundError(MusicSyncServerError):
    """Exception for missing remote resources (HTTP 404)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)
