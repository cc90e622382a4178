"""
MusicSync Client - Data Error Exception

Exception raised when imported application data cannot be accepted.

Author: MusicSync Project
"""

from .api_error import MusicSyncAPIError


class MusicSyncDataError(MusicSyncAPIError):
    """Exception for unsupported or malformed application data."""
    pass
