"""
MusicSync Client - Models Package

Contains data models and enumerations used by the client.

Author: MusicSync Project
"""

from .app_data import (
    APP_DATA_VERSION,
    ApiConfig,
    AppData,
    AppSettings,
    ConflictStrategy,
    Favorites,
    History,
    HistoryEntry,
    Playlist,
    WebDavConfig,
    create_default_data,
    now_ms
)
from .sync_files import (
    DEFAULT_FILE_PATHS,
    LEGACY_DATA_FILE_PATH,
    METADATA_FILE_PATH,
    REMOTE_ROOT,
    SYNC_FORMAT_VERSION,
    EntityState,
    FileDescriptor,
    SyncEntity,
    SyncMetadata
)
from .key_value import Base, KeyValue

__all__ = [
    'APP_DATA_VERSION',
    'ApiConfig',
    'AppData',
    'AppSettings',
    'ConflictStrategy',
    'Favorites',
    'History',
    'HistoryEntry',
    'Playlist',
    'WebDavConfig',
    'create_default_data',
    'now_ms',
    'DEFAULT_FILE_PATHS',
    'LEGACY_DATA_FILE_PATH',
    'METADATA_FILE_PATH',
    'REMOTE_ROOT',
    'SYNC_FORMAT_VERSION',
    'EntityState',
    'FileDescriptor',
    'SyncEntity',
    'SyncMetadata',
    'Base',
    'KeyValue'
]
