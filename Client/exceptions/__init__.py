"""
MusicSync Client - Exceptions Package

Contains all exception classes for the MusicSync client.

Author: MusicSync Project
"""

from .api_error import MusicSyncAPIError
from .auth_error import MusicSyncAuthError
from .server_error import MusicSyncServerError
from .not_found_error import MusicSyncNotFoundError
from .data_error import MusicSyncDataError
from .config_error import MusicSyncConfigError
from .sync_errors import (
    MusicSyncSyncError,
    SyncWriteError,
    SyncReadError,
    SyncEntityMissing,
    SyncTotalFailure
)

__all__ = [
    'MusicSyncAPIError',
    'MusicSyncAuthError',
    'MusicSyncServerError',
    'MusicSyncNotFoundError',
    'MusicSyncDataError',
    'MusicSyncConfigError',
    'MusicSyncSyncError',
    'SyncWriteError',
    'SyncReadError',
    'SyncEntityMissing',
    'SyncTotalFailure'
]
