"""
MusicSync Client - Application Data Manager

Loads and saves the application snapshot and play counts in the local
store, and handles JSON export/import of the snapshot.

Author: MusicSync Project
"""

import json
import logging
from typing import Dict

from pydantic import ValidationError

from exceptions import MusicSyncDataError
from models import APP_DATA_VERSION, AppData, create_default_data, now_ms

# Configure logging
logger = logging.getLogger(__name__)


APP_DATA_KEY = "music_app_data_v1"
PLAY_COUNTS_KEY = "music_play_counts"


class AppDataManager:
    """
    Manages locally owned application state.

    Responsibilities:
    - Load the snapshot from the local store, falling back to defaults
    - Save the snapshot, stamping updatedAt
    - Load and save play counts
    - Export and import the snapshot as JSON
    """

    def __init__(self, store):
        """
        Initialize application data manager.

        Args:
            store: Key-value store with get(key), set(key, value) and remove(key)
        """
        self.store = store

    def load_local_data(self) -> AppData:
        """
        Load the snapshot from the local store.

        Missing, unreadable or wrong-version data yields a default snapshot.

        Returns:
            AppData snapshot
        """
        raw = self.store.get(APP_DATA_KEY)
        if not raw:
            return create_default_data()

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict) or parsed.get("version") != APP_DATA_VERSION:
                logger.warning("Stored application data has an unsupported version - using defaults")
                return create_default_data()
            return self._merge_with_defaults(parsed)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Stored application data is unreadable - using defaults: {e}")
            return create_default_data()

    def save_local_data(self, data: AppData, touch: bool = True) -> AppData:
        """
        Save the snapshot, stamping updatedAt with the current time.

        Args:
            data: Snapshot to save
            touch: Stamp updatedAt; False keeps the snapshot's own timestamp

        Returns:
            The saved snapshot
        """
        saved = data.model_copy(update={"updated_at": now_ms()}) if touch else data
        self.store.set(APP_DATA_KEY, json.dumps(saved.to_json_dict()))
        logger.debug("Application data saved to local store")
        return saved

    def replace_data(self, data: AppData) -> AppData:
        """
        Replace the local snapshot with another one (e.g. after download).

        The snapshot keeps its own updatedAt.

        Args:
            data: Snapshot that becomes the local state

        Returns:
            The saved snapshot
        """
        logger.info("Replacing local application data")
        return self.save_local_data(data, touch=False)

    def load_play_counts(self) -> Dict[str, int]:
        """
        Load play counts from the local store.

        Returns:
            Mapping of track id to play count (empty if none stored)
        """
        raw = self.store.get(PLAY_COUNTS_KEY)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored play counts are unreadable - starting empty")
            return {}
        if not isinstance(parsed, dict):
            return {}
        return {str(key): int(value) for key, value in parsed.items() if isinstance(value, (int, float))}

    def save_play_counts(self, play_counts: Dict[str, int]):
        """
        Save play counts to the local store.

        Args:
            play_counts: Mapping of track id to play count
        """
        self.store.set(PLAY_COUNTS_KEY, json.dumps(play_counts))

    def export_local_data(self) -> str:
        """
        Export the local snapshot as pretty-printed JSON.

        Returns:
            JSON document
        """
        return json.dumps(self.load_local_data().to_json_dict(), indent=2, ensure_ascii=False)

    def import_local_data(self, document: str) -> AppData:
        """
        Import a JSON snapshot, replacing the local one.

        Args:
            document: JSON document produced by export_local_data

        Returns:
            The imported snapshot

        Raises:
            MusicSyncDataError: If the document is not a version 1 snapshot
        """
        try:
            parsed = json.loads(document)
        except json.JSONDecodeError as e:
            raise MusicSyncDataError(f"Import data is not valid JSON: {e}")

        if not isinstance(parsed, dict) or parsed.get("version") != APP_DATA_VERSION:
            raise MusicSyncDataError("Unsupported data version")

        try:
            merged = self._merge_with_defaults(parsed)
        except ValidationError as e:
            raise MusicSyncDataError(f"Import data does not match the schema: {e}")

        logger.info("Imported application data")
        return self.save_local_data(merged)

    @staticmethod
    def _merge_with_defaults(parsed: dict) -> AppData:
        """Overlay top-level keys of parsed data onto a default snapshot."""
        merged = create_default_data().to_json_dict()
        merged.update(parsed)
        return AppData.model_validate(merged)
