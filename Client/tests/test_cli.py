"""
Tests for the command line interface of MusicSync Client

Runs CLI operations end to end against a temporary config directory, a
temporary local store and the in-memory WebDAV store.
"""

import json
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import cli
import client
from managers import AppDataManager, ConfigManager, LocalStore
from models import Favorites, SyncEntity


@pytest.fixture
def config_mgr(tmp_path):
    manager = ConfigManager(base_dir=tmp_path)
    manager.load_config()
    manager.set("store_path", str(tmp_path / "store.db"))
    return manager


@pytest.fixture
def cli_remote(remote, monkeypatch):
    """Route the CLI's WebDAV client to the in-memory store"""
    remote.created_with = []

    def create_client(config, proxy_url=None, verify_ssl=True):
        remote.created_with.append({"url": config.url, "proxy_url": proxy_url})
        return remote

    monkeypatch.setattr(cli, "WebDAVAPI", create_client)
    return remote


def read_local(config_mgr):
    store = LocalStore(config_mgr.get("store_path"))
    try:
        data_mgr = AppDataManager(store)
        return data_mgr.load_local_data(), data_mgr.load_play_counts()
    finally:
        store.close()


def seed_local(config_mgr, songs):
    store = LocalStore(config_mgr.get("store_path"))
    try:
        data_mgr = AppDataManager(store)
        data = data_mgr.load_local_data()
        data_mgr.save_local_data(data.model_copy(update={"favorites": Favorites(songs=songs)}))
    finally:
        store.close()


@pytest.fixture
def configured(config_mgr):
    assert cli.configure_webdav("https://dav.example.com/dav", "alice", "s3cret",
                                config_manager=config_mgr) == cli.EXIT_SUCCESS
    seed_local(config_mgr, ["trackA"])
    return config_mgr


# ==================== Download ====================

def test_download_from_empty_remote_keeps_local_state(configured, cli_remote):
    exit_code = cli.run_cli_operation("download", config_manager=configured)

    assert exit_code == cli.EXIT_FAILURE
    data, _ = read_local(configured)
    assert data.settings.webdav.url == "https://dav.example.com/dav"
    assert data.settings.webdav.password == "s3cret"
    assert data.favorites.songs == ["trackA"]
    assert cli_remote.writes == []
    assert cli_remote.closed is True


def test_download_replaces_local_state(configured, cli_remote):
    cli_remote.put_document(SyncEntity.FAVORITES, {"songs": ["remote-song"]}, updated_at=5)
    cli_remote.put_document(SyncEntity.PLAY_COUNTS, {"remote-song": 2}, updated_at=5)

    exit_code = cli.run_cli_operation("download", config_manager=configured)

    assert exit_code == cli.EXIT_SUCCESS
    data, play_counts = read_local(configured)
    assert data.favorites.songs == ["remote-song"]
    assert data.updated_at == 5
    assert play_counts == {"remote-song": 2}
    # No remote settings file: the local connection settings survive
    assert data.settings.webdav.url == "https://dav.example.com/dav"


def test_download_with_unreachable_remote_fails(configured, cli_remote):
    cli_remote.config_error = cli.MusicSyncAPIError("WebDAV URL is not configured or invalid")

    assert cli.run_cli_operation("download", config_manager=configured) == cli.EXIT_FAILURE
    assert read_local(configured)[0].favorites.songs == ["trackA"]


# ==================== Sync / Upload ====================

def test_first_sync_uploads_local_state(configured, cli_remote):
    exit_code = cli.run_cli_operation("sync", config_manager=configured)

    assert exit_code == cli.EXIT_SUCCESS
    assert cli_remote.document("/music-app/favorites.json")["favorites"]["songs"] == ["trackA"]
    assert cli_remote.created_with == [{"url": "https://dav.example.com/dav", "proxy_url": None}]


def test_sync_strategy_override(configured, cli_remote):
    cli_remote.put_document(SyncEntity.FAVORITES, {"songs": ["remote-song"]}, updated_at=10**14)

    exit_code = cli.run_cli_operation("sync", "client_wins", config_manager=configured)

    assert exit_code == cli.EXIT_SUCCESS
    assert cli_remote.document("/music-app/favorites.json")["favorites"]["songs"] == ["trackA"]
    assert read_local(configured)[0].favorites.songs == ["trackA"]


def test_upload_write_failure_exits_with_failure(configured, cli_remote):
    cli_remote.fail_put.add("/music-app/history.json")
    assert cli.run_cli_operation("upload", config_manager=configured) == cli.EXIT_FAILURE


def test_connection_test_failure(configured, cli_remote):
    cli_remote.config_error = cli.MusicSyncAPIError("bad url")
    assert cli.run_cli_operation("test", config_manager=configured) == cli.EXIT_CONNECTION_ERROR


# ==================== Configuration ====================

def test_operation_requires_configuration(config_mgr, cli_remote):
    assert cli.run_cli_operation("sync", config_manager=config_mgr) == cli.EXIT_CONFIG_ERROR
    assert cli_remote.created_with == []


def test_unknown_operation(configured, cli_remote):
    assert cli.run_cli_operation("restore", config_manager=configured) == cli.EXIT_FAILURE


def test_proxy_url_is_passed_to_client(configured, cli_remote):
    assert cli.configure_webdav("https://dav.example.com/dav", "alice", "s3cret",
                                proxy_url="http://localhost:8000/", config_manager=configured) == cli.EXIT_SUCCESS

    cli.run_cli_operation("list", config_manager=configured)

    assert cli_remote.created_with[0]["proxy_url"] == "http://localhost:8000"


def test_configure_rejects_bad_proxy_url(config_mgr):
    exit_code = cli.configure_webdav("https://dav.example.com/dav", "alice", "s3cret",
                                     proxy_url="ftp://proxy.example", config_manager=config_mgr)

    assert exit_code == cli.EXIT_CONFIG_ERROR
    assert read_local(config_mgr)[0].settings.webdav.url == ""


def test_invalid_config_file_is_a_config_error(tmp_path, cli_remote):
    (tmp_path / "config.json").write_text(json.dumps({"log_level": "LOUD"}))

    exit_code = cli.run_cli_operation("sync", config_manager=ConfigManager(base_dir=tmp_path))

    assert exit_code == cli.EXIT_CONFIG_ERROR


# ==================== Argument Parsing ====================

def test_main_dispatches_operation_with_strategy(monkeypatch):
    run = Mock(return_value=cli.EXIT_SUCCESS)
    monkeypatch.setattr(cli, "run_cli_operation", run)
    monkeypatch.setattr(sys, "argv", ["client.py", "sync", "--strategy", "last_writer_wins"])

    assert client.main() == cli.EXIT_SUCCESS
    run.assert_called_once_with("sync", "last_writer_wins")


def test_main_configure_uses_given_password(monkeypatch):
    configure = Mock(return_value=cli.EXIT_SUCCESS)
    monkeypatch.setattr(cli, "configure_webdav", configure)
    monkeypatch.setattr(sys, "argv", [
        "client.py", "configure", "--url", "https://dav.example.com", "--username", "bob",
        "--password", "pw", "--proxy-url", "http://localhost:8000"
    ])

    assert client.main() == cli.EXIT_SUCCESS
    configure.assert_called_once_with("https://dav.example.com", "bob", "pw", None, "http://localhost:8000")


def test_main_rejects_unknown_strategy(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["client.py", "sync", "--strategy", "coin_flip"])

    with pytest.raises(SystemExit):
        client.main()
