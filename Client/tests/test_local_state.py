"""
Tests for local state handling in MusicSync Client

Covers the SQLite key-value store, the application data manager and
the client configuration file.
"""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from exceptions import MusicSyncConfigError, MusicSyncDataError
from managers import (
    APP_DATA_KEY,
    DEFAULT_CONFIG,
    AppDataManager,
    ConfigManager,
    LocalStore
)
from models import AppData, Favorites, create_default_data


@pytest.fixture
def store(tmp_path):
    local_store = LocalStore(str(tmp_path / "data" / "musicsync.db"))
    yield local_store
    local_store.close()


@pytest.fixture
def data_mgr(store):
    return AppDataManager(store)


# ==================== LocalStore ====================

def test_store_get_set_remove(store):
    assert store.get("missing") is None

    store.set("key", "one")
    assert store.get("key") == "one"

    store.set("key", "two")
    assert store.get("key") == "two"

    store.remove("key")
    assert store.get("key") is None
    # Removing again is not an error
    store.remove("key")


def test_store_persists_across_instances(tmp_path):
    db_path = str(tmp_path / "persist.db")
    first = LocalStore(db_path)
    first.set("greeting", "hello")
    first.close()

    second = LocalStore(db_path)
    try:
        assert second.get("greeting") == "hello"
    finally:
        second.close()


# ==================== AppDataManager ====================

def test_load_defaults_when_empty(data_mgr):
    data = data_mgr.load_local_data()
    assert data.version == 1
    assert data.favorites == Favorites()
    assert data.settings.webdav.timeout_ms == 15000


@pytest.mark.parametrize("raw", ["{broken", json.dumps({"version": 2}), json.dumps([1])])
def test_load_defaults_when_unusable(store, data_mgr, raw):
    store.set(APP_DATA_KEY, raw)
    assert data_mgr.load_local_data().favorites == Favorites()


def test_load_merges_partial_data(store, data_mgr):
    store.set(APP_DATA_KEY, json.dumps({"version": 1, "updatedAt": 7, "favorites": {"songs": ["x"]}}))

    data = data_mgr.load_local_data()

    assert data.updated_at == 7
    assert data.favorites.songs == ["x"]
    assert data.playlists == []


def test_save_stamps_updated_at(data_mgr):
    saved = data_mgr.save_local_data(AppData(updated_at=1))

    assert saved.updated_at > 1
    assert data_mgr.load_local_data().updated_at == saved.updated_at


def test_replace_keeps_timestamp(data_mgr):
    remote = AppData(updated_at=123, favorites=Favorites(songs=["remote"]))

    data_mgr.replace_data(remote)

    loaded = data_mgr.load_local_data()
    assert loaded.updated_at == 123
    assert loaded.favorites.songs == ["remote"]


def test_stored_document_uses_camel_case(store, data_mgr):
    data_mgr.save_local_data(create_default_data())

    stored = json.loads(store.get(APP_DATA_KEY))

    assert "updatedAt" in stored
    assert "timeoutMs" in stored["settings"]["webdav"]
    assert stored["settings"]["webdav"]["conflictStrategy"] == "server_wins"


def test_play_counts(data_mgr):
    assert data_mgr.load_play_counts() == {}
    data_mgr.save_play_counts({"t1": 4, "t2": 1})
    assert data_mgr.load_play_counts() == {"t1": 4, "t2": 1}


def test_export_import(data_mgr, tmp_path):
    data_mgr.save_local_data(AppData(favorites=Favorites(songs=["fav"])))
    exported = data_mgr.export_local_data()

    other_store = LocalStore(str(tmp_path / "other.db"))
    try:
        other = AppDataManager(other_store)
        imported = other.import_local_data(exported)
        assert imported.favorites.songs == ["fav"]
        assert other.load_local_data().favorites.songs == ["fav"]
    finally:
        other_store.close()


@pytest.mark.parametrize("document", ["not json", json.dumps({"version": 2}), json.dumps({"version": "1"})])
def test_import_rejects_bad_documents(data_mgr, document):
    with pytest.raises(MusicSyncDataError):
        data_mgr.import_local_data(document)


# ==================== ConfigManager ====================

def test_config_created_with_defaults(tmp_path):
    config_mgr = ConfigManager(base_dir=tmp_path)
    config = config_mgr.load_config()

    assert config == DEFAULT_CONFIG
    assert (tmp_path / "config.json").exists()


def test_config_merges_missing_keys(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"proxy_url": "http://localhost:8000"}))

    config_mgr = ConfigManager(base_dir=tmp_path)
    config_mgr.load_config()

    assert config_mgr.get("proxy_url") == "http://localhost:8000"
    assert config_mgr.get("log_retention_days") == 30


def test_config_set_persists(tmp_path):
    config_mgr = ConfigManager(base_dir=tmp_path)
    config_mgr.load_config()
    config_mgr.set("verify_ssl", False)

    reloaded = ConfigManager(base_dir=tmp_path)
    reloaded.load_config()
    assert reloaded.get("verify_ssl") is False


@pytest.mark.parametrize("value,expected", [
    ("http://localhost:8000/", "http://localhost:8000"),
    ("https://proxy.example/musicsync", "https://proxy.example/musicsync"),
    ("", None),
    (None, None),
])
def test_proxy_url_is_normalized(tmp_path, value, expected):
    config_mgr = ConfigManager(base_dir=tmp_path)
    config_mgr.load_config()
    config_mgr.set("proxy_url", value)
    assert config_mgr.get("proxy_url") == expected


@pytest.mark.parametrize("value", ["ftp://proxy.example", "localhost:8000", "http://", "http://proxy?x=1", 8000])
def test_invalid_proxy_url_is_rejected(tmp_path, value):
    config_mgr = ConfigManager(base_dir=tmp_path)
    config_mgr.load_config()

    with pytest.raises(MusicSyncConfigError):
        config_mgr.set("proxy_url", value)

    assert ConfigManager(base_dir=tmp_path).load_config()["proxy_url"] is None


@pytest.mark.parametrize("content", [
    "{not json",
    "[]",
    json.dumps({"proxy_url": "gopher://old"}),
    json.dumps({"log_level": "LOUD"}),
    json.dumps({"log_retention_days": -1}),
    json.dumps({"verify_ssl": "yes"}),
    json.dumps({"store_path": ""}),
])
def test_invalid_config_file_is_rejected(tmp_path, content):
    (tmp_path / "config.json").write_text(content)

    with pytest.raises(MusicSyncConfigError):
        ConfigManager(base_dir=tmp_path).load_config()


def test_log_level_is_normalized(tmp_path):
    (tmp_path / "config.json").write_text(json.dumps({"log_level": "debug"}))
    assert ConfigManager(base_dir=tmp_path).load_config()["log_level"] == "DEBUG"
