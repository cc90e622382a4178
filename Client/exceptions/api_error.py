"""
MusicSync Client - API Error Exception

Base exception class for all remote store and sync errors.

Author: MusicSync Project
"""


class MusicSyncAPIError(Exception):
    """Base exception for API errors."""
    pass
