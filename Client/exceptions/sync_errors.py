"""
MusicSync Client - Sync Error Exceptions

Exceptions raised by the upload and download engines.

Author: MusicSync Project
"""

from typing import Dict, Optional

from .api_error import MusicSyncAPIError


class MusicSyncSyncError(MusicSyncAPIError):
    """Base exception for sync engine errors."""
    pass


class SyncWriteError(MusicSyncSyncError):
    """
    A single entity or metadata write failed and the upload was aborted.

    Files written before the failure are left in place.
    """

    def __init__(self, message: str, entity: Optional[str] = None,
                 states: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.entity = entity
        self.states = states or {}


class SyncReadError(MusicSyncSyncError):
    """Reading a remote sync file failed in transport."""

    def __init__(self, message: str, entity: Optional[str] = None):
        super().__init__(message)
        self.entity = entity


class SyncEntityMissing(SyncReadError):
    """A remote entity file is absent, unparseable or has the wrong version."""
    pass


class SyncTotalFailure(MusicSyncSyncError):
    """No sync data could be established at all."""
    pass
