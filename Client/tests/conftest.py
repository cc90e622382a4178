"""
Shared fixtures for MusicSync Client tests

Provides an in-memory stand-in for the WebDAV store.
"""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from api import RemoteItem
from exceptions import MusicSyncNotFoundError, MusicSyncServerError
from models import DEFAULT_FILE_PATHS


class FakeWebDAVStore:
    """In-memory stand-in for WebDAVAPI"""

    def __init__(self):
        self.files = {}
        self.writes = []
        self.fail_put = set()
        self.fail_get = {}
        self.collections = set()
        self.config_error = None
        self.closed = False

    def validate_config(self):
        if self.config_error:
            raise self.config_error

    def get_file_contents(self, remote_path):
        if remote_path in self.fail_get:
            raise self.fail_get[remote_path]
        if remote_path not in self.files:
            raise MusicSyncNotFoundError(f"Remote file not found: {remote_path}")
        return self.files[remote_path].decode("utf-8")

    def put_file_contents(self, remote_path, data, overwrite=True):
        if remote_path in self.fail_put:
            raise MusicSyncServerError(f"PUT {remote_path} failed with status 507", status_code=507)
        self.files[remote_path] = data.encode("utf-8") if isinstance(data, str) else data
        self.writes.append(remote_path)

    def delete_file(self, remote_path):
        if remote_path not in self.files:
            raise MusicSyncNotFoundError(f"Remote file not found: {remote_path}")
        del self.files[remote_path]

    def create_directory(self, remote_path):
        created = remote_path not in self.collections
        self.collections.add(remote_path)
        return created

    def get_directory_contents(self, remote_path="/", deep=False):
        return [
            RemoteItem(name=path.rsplit("/", 1)[-1], path=path, is_directory=False, size=len(body))
            for path, body in self.files.items()
            if path.startswith(remote_path.rstrip("/") + "/")
        ]

    def put_document(self, entity, payload, updated_at, version=1):
        document = {"version": version, "updatedAt": updated_at, entity.value: payload}
        self.files[DEFAULT_FILE_PATHS[entity]] = json.dumps(document).encode("utf-8")

    def document(self, remote_path):
        return json.loads(self.files[remote_path])

    def close(self):
        self.closed = True


@pytest.fixture
def remote():
    return FakeWebDAVStore()

