"""
MusicSync Client - Sync File Set Model

Partitioning of application state into independently synchronized
entities, their remote file paths and the metadata descriptor written
after each upload.

Author: MusicSync Project
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import Field

from .app_data import CamelModel


SYNC_FORMAT_VERSION = 1

REMOTE_ROOT = "/music-app/"


class SyncEntity(str, Enum):
    """Independently synchronized slices of application state."""
    SETTINGS = "settings"
    FAVORITES = "favorites"
    HISTORY = "history"
    PLAYLISTS = "playlists"
    PLAY_COUNTS = "playCounts"


DEFAULT_FILE_PATHS: Dict[SyncEntity, str] = {
    SyncEntity.SETTINGS: "/music-app/settings.json",
    SyncEntity.FAVORITES: "/music-app/favorites.json",
    SyncEntity.HISTORY: "/music-app/history.json",
    SyncEntity.PLAYLISTS: "/music-app/playlists.json",
    SyncEntity.PLAY_COUNTS: "/music-app/playCounts.json",
}

METADATA_FILE_PATH = "/music-app/metadata.json"

# Deprecated single-document representation
LEGACY_DATA_FILE_PATH = "/music-app/data.json"


class EntityState(str, Enum):
    """Upload state of a single entity file."""
    PENDING = "pending"
    WRITTEN = "written"
    FAILED = "failed"


class FileDescriptor(CamelModel):
    """Metadata recorded for one uploaded entity file."""
    updated_at: int
    size: int
    checksum: Optional[str] = None


class SyncMetadata(CamelModel):
    """Informational descriptor of the last upload; never required for download."""
    version: int = SYNC_FORMAT_VERSION
    last_sync: int
    files: Dict[str, FileDescriptor] = Field(default_factory=dict)

