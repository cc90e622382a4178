"""
MusicSync Client - Application Data Models

Pydantic models for the application snapshot: settings, favorites,
history and playlists. JSON documents use camelCase keys.

Author: MusicSync Project
"""

import time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


APP_DATA_VERSION = 1


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class ConflictStrategy(str, Enum):
    """Policies for choosing between local and remote snapshots."""
    SERVER_WINS = "server_wins"
    CLIENT_WINS = "client_wins"
    LAST_WRITER_WINS = "last_writer_wins"


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ApiConfig(CamelModel):
    base_url: str = ""


class WebDavConfig(CamelModel):
    """Remote WebDAV store connection settings."""
    url: str = ""
    username: str = ""
    password: str = Field(default="", repr=False)
    remote_path: str = "/music-app/data.json"
    timeout_ms: int = 15000
    auto_sync: bool = False
    conflict_strategy: Optional[str] = ConflictStrategy.SERVER_WINS.value


class AppSettings(CamelModel):
    api: ApiConfig = Field(default_factory=ApiConfig)
    webdav: WebDavConfig = Field(default_factory=WebDavConfig)


class Favorites(CamelModel):
    songs: List[str] = Field(default_factory=list)
    playlists: List[str] = Field(default_factory=list)
    albums: List[str] = Field(default_factory=list)


class HistoryEntry(CamelModel):
    id: str
    played_at: int


class History(CamelModel):
    songs: List[HistoryEntry] = Field(default_factory=list)


class Playlist(CamelModel):
    id: str
    name: str
    track_ids: List[str] = Field(default_factory=list)
    created_at: int
    updated_at: int


class AppData(CamelModel):
    """
    Full application snapshot.

    This is the unit compared during conflict resolution; updated_at is
    the epoch-millisecond time of the last local change.
    """
    version: int = APP_DATA_VERSION
    updated_at: int = Field(default_factory=now_ms)
    settings: AppSettings = Field(default_factory=AppSettings)
    favorites: Favorites = Field(default_factory=Favorites)
    history: History = Field(default_factory=History)
    playlists: List[Playlist] = Field(default_factory=list)


def create_default_data() -> AppData:
    """Fresh snapshot with default settings and empty collections."""
    return AppData()
