"""
MusicSync Client - Sync Operations Module

Implements Upload, Download and full Sync cycles against the remote
WebDAV store. Application state is split into independent entity files
(settings, favorites, history, playlists, playCounts) so that a missing
or damaged file only affects its own entity.

Author: MusicSync Project
"""

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from exceptions import (
    MusicSyncAPIError,
    MusicSyncNotFoundError,
    SyncEntityMissing,
    SyncReadError,
    SyncTotalFailure,
    SyncWriteError
)
from models import (
    DEFAULT_FILE_PATHS,
    LEGACY_DATA_FILE_PATH,
    METADATA_FILE_PATH,
    REMOTE_ROOT,
    SYNC_FORMAT_VERSION,
    AppData,
    AppSettings,
    EntityState,
    Favorites,
    FileDescriptor,
    History,
    Playlist,
    SyncEntity,
    SyncMetadata,
    create_default_data,
    now_ms
)
from .conflict_resolver import resolve_conflict

# Configure logging
logger = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[str, int, int], None]]


@dataclass
class DownloadReport:
    """Outcome of the last download, per entity."""
    found: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)  # absent, unparseable or wrong version
    unreadable: List[str] = field(default_factory=list)  # transport failures


def _is_supported_version(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value == SYNC_FORMAT_VERSION


def _serialize(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")


class SyncOperations:
    """
    Handles synchronization of application state with the WebDAV store.

    Responsibilities:
    - Upload every entity file, then the metadata descriptor
    - Download every entity file independently and merge into a snapshot
    - Run a full sync cycle with conflict resolution
    - Remote housekeeping (listing, legacy file migration and cleanup)
    - Report progress via callbacks
    """

    def __init__(self, api_client, data_manager=None):
        """
        Initialize sync operations handler.

        Args:
            api_client: WebDAVAPI instance for remote store communication
            data_manager: AppDataManager instance for local state (needed by sync)
        """
        self.api = api_client
        self.data_mgr = data_manager
        self.entity_states: Dict[str, EntityState] = {}
        self.last_download_report: Optional[DownloadReport] = None

    # ==================== Connection ====================

    def test_connection(self) -> bool:
        """
        Check that the WebDAV root can be listed.

        Returns:
            True if the store answered the listing, False otherwise
        """
        try:
            self.api.validate_config()
            self.api.get_directory_contents("/", deep=False)
            return True
        except MusicSyncAPIError as e:
            logger.warning(f"WebDAV connection test failed: {e}")
            return False

    # ==================== Upload ====================

    def upload(self, data: AppData, play_counts: Dict[str, int],
               progress_callback: ProgressCallback = None) -> SyncMetadata:
        """
        Upload all entity files, then the metadata descriptor.

        Every file is written with overwrite semantics. A failed write aborts
        the upload; files written before it stay on the remote.

        Args:
            data: Snapshot to upload
            play_counts: Play counts to upload
            progress_callback: Optional callback (message, current, total)

        Returns:
            The metadata descriptor that was written

        Raises:
            SyncWriteError: If any entity or metadata write fails
        """
        now = now_ms()
        entities = list(SyncEntity)
        total = len(entities) + 1
        self.entity_states = {entity.value: EntityState.PENDING for entity in entities}

        logger.info("Starting upload of sync data")

        try:
            self.api.create_directory(REMOTE_ROOT)
        except MusicSyncAPIError as e:
            # Entity writes below report the real failure if the folder is unusable
            logger.warning(f"Could not create remote folder {REMOTE_ROOT}: {e}")

        descriptors: Dict[str, FileDescriptor] = {}

        for index, entity in enumerate(entities):
            path = DEFAULT_FILE_PATHS[entity]
            if progress_callback:
                progress_callback(f"Uploading {entity.value}...", index, total)

            body = _serialize({
                "version": SYNC_FORMAT_VERSION,
                "updatedAt": now,
                entity.value: self._entity_payload(entity, data, play_counts)
            })

            try:
                self.api.put_file_contents(path, body, overwrite=True)
            except MusicSyncAPIError as e:
                self.entity_states[entity.value] = EntityState.FAILED
                logger.error(f"Upload of {entity.value} failed: {e}")
                raise SyncWriteError(
                    f"Upload of {entity.value} failed: {e}",
                    entity=entity.value,
                    states=self._state_summary()
                ) from e

            self.entity_states[entity.value] = EntityState.WRITTEN
            descriptors[entity.value] = FileDescriptor(
                updated_at=now,
                size=len(body),
                checksum=hashlib.sha256(body).hexdigest()
            )
            logger.info(f"Uploaded {path} ({len(body)} bytes)")

        metadata = SyncMetadata(version=SYNC_FORMAT_VERSION, last_sync=now, files=descriptors)

        if progress_callback:
            progress_callback("Uploading sync metadata...", len(entities), total)

        try:
            self.api.put_file_contents(METADATA_FILE_PATH, _serialize(metadata.to_json_dict()), overwrite=True)
        except MusicSyncAPIError as e:
            logger.error(f"Upload of sync metadata failed: {e}")
            raise SyncWriteError(
                f"Upload of sync metadata failed: {e}",
                entity="metadata",
                states=self._state_summary()
            ) from e

        if progress_callback:
            progress_callback("Upload complete", total, total)

        logger.info("Upload of sync data completed")
        return metadata

    def _state_summary(self) -> Dict[str, str]:
        return {entity: state.value for entity, state in self.entity_states.items()}

    @staticmethod
    def _entity_payload(entity: SyncEntity, data: AppData, play_counts: Dict[str, int]) -> Any:
        """JSON payload stored under the entity key of its file."""
        if entity == SyncEntity.SETTINGS:
            return data.settings.to_json_dict()
        if entity == SyncEntity.FAVORITES:
            return data.favorites.to_json_dict()
        if entity == SyncEntity.HISTORY:
            return data.history.to_json_dict()
        if entity == SyncEntity.PLAYLISTS:
            return [playlist.to_json_dict() for playlist in data.playlists]
        return dict(play_counts)

    # ==================== Download ====================

    def download(self, progress_callback: ProgressCallback = None) -> Optional[Tuple[AppData, Dict[str, int]]]:
        """
        Download all entity files and merge them into a default snapshot.

        Each entity is read on its own; a missing, unparseable or wrong-version
        file leaves that entity at its default value. The snapshot's updatedAt
        is the newest updatedAt among the files that were read.

        Args:
            progress_callback: Optional callback (message, current, total)

        Returns:
            (snapshot, play_counts), or None if no sync data could be
            established at all
        """
        self.last_download_report = None
        entities = list(SyncEntity)
        total = len(entities)

        try:
            self.api.validate_config()
            logger.info("Starting download of sync data")

            self._read_metadata()

            data = create_default_data()
            play_counts: Dict[str, int] = {}
            report = DownloadReport()
            newest: Optional[int] = None

            for index, entity in enumerate(entities):
                if progress_callback:
                    progress_callback(f"Downloading {entity.value}...", index, total)

                try:
                    updated_at, payload = self._read_entity(entity)
                    data, play_counts = self._apply_entity(entity, payload, data, play_counts)
                except SyncEntityMissing as e:
                    logger.info(f"Using default {entity.value}: {e}")
                    report.missing.append(entity.value)
                    continue
                except SyncReadError as e:
                    logger.warning(f"Using default {entity.value}: {e}")
                    report.unreadable.append(entity.value)
                    continue

                report.found.append(entity.value)
                if updated_at is not None:
                    newest = updated_at if newest is None else max(newest, updated_at)

            if newest is not None:
                data = data.model_copy(update={"updated_at": newest})

            self.last_download_report = report

            if progress_callback:
                progress_callback("Download complete", total, total)

            logger.info(f"Download finished: {len(report.found)} found, "
                        f"{len(report.missing) + len(report.unreadable)} defaulted")
            return data, play_counts

        except Exception as e:
            failure = SyncTotalFailure(f"Download failed: {e}")
            logger.error(str(failure), exc_info=not isinstance(e, MusicSyncAPIError))
            return None

    def _read_metadata(self) -> Optional[SyncMetadata]:
        """Read the metadata descriptor; its absence never affects a download."""
        try:
            raw = self.api.get_file_contents(METADATA_FILE_PATH)
            return SyncMetadata.model_validate(json.loads(raw))
        except (MusicSyncAPIError, ValueError) as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            logger.debug(f"Sync metadata unavailable: {e}")
            return None

    def _read_entity(self, entity: SyncEntity) -> Tuple[Optional[int], Any]:
        """
        Read one entity file.

        Returns:
            (updatedAt or None, payload)

        Raises:
            SyncEntityMissing: File absent, not JSON, wrong version or no payload
            SyncReadError: Transport failure
        """
        path = DEFAULT_FILE_PATHS[entity]

        try:
            raw = self.api.get_file_contents(path)
        except MusicSyncNotFoundError:
            raise SyncEntityMissing(f"{path} does not exist", entity=entity.value)
        except MusicSyncAPIError as e:
            raise SyncReadError(f"Reading {path} failed: {e}", entity=entity.value) from e

        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            raise SyncEntityMissing(f"{path} is not valid JSON", entity=entity.value)

        if not isinstance(document, dict) or not _is_supported_version(document.get("version")):
            raise SyncEntityMissing(f"{path} has an unsupported version", entity=entity.value)

        payload = document.get(entity.value)
        if payload is None:
            raise SyncEntityMissing(f"{path} has no {entity.value} data", entity=entity.value)

        updated_at = document.get("updatedAt")
        if not isinstance(updated_at, int) or isinstance(updated_at, bool):
            updated_at = None

        return updated_at, payload

    @staticmethod
    def _apply_entity(entity: SyncEntity, payload: Any, data: AppData,
                      play_counts: Dict[str, int]) -> Tuple[AppData, Dict[str, int]]:
        """
        Merge one entity payload into the snapshot being built.

        Raises:
            SyncEntityMissing: If the payload does not match the entity schema
        """
        try:
            if entity == SyncEntity.SETTINGS:
                if not isinstance(payload, dict):
                    raise ValueError("settings must be an object")
                merged = {**data.settings.to_json_dict(), **payload}
                return data.model_copy(update={"settings": AppSettings.model_validate(merged)}), play_counts
            if entity == SyncEntity.FAVORITES:
                return data.model_copy(update={"favorites": Favorites.model_validate(payload)}), play_counts
            if entity == SyncEntity.HISTORY:
                return data.model_copy(update={"history": History.model_validate(payload)}), play_counts
            if entity == SyncEntity.PLAYLISTS:
                if not isinstance(payload, list):
                    raise ValueError("playlists must be a list")
                playlists = [Playlist.model_validate(item) for item in payload]
                return data.model_copy(update={"playlists": playlists}), play_counts
            if not isinstance(payload, dict):
                raise ValueError("playCounts must be an object")
            return data, {str(track_id): int(count) for track_id, count in payload.items()}
        except (ValidationError, ValueError, TypeError) as e:
            raise SyncEntityMissing(f"{entity.value} data does not match its schema: {e}", entity=entity.value)

    # ==================== Sync Cycle ====================

    def sync(self, strategy: Optional[str] = None, progress_callback: ProgressCallback = None) -> AppData:
        """
        Run one sync cycle between local and remote state.

        Process:
        1. Load local snapshot and play counts
        2. Download remote snapshot
        3. No remote data yet: upload local state
        4. Otherwise resolve the conflict; upload local if it wins,
           store remote locally if it wins (local settings kept
           when the remote has no settings file)

        Args:
            strategy: Conflict strategy override (default: the snapshot's
                      settings.webdav.conflictStrategy)
            progress_callback: Optional callback (message, current, total)

        Returns:
            The snapshot that is now the local state

        Raises:
            SyncTotalFailure: If remote state cannot be established
            SyncWriteError: If uploading the local state fails
        """
        if self.data_mgr is None:
            raise SyncTotalFailure("Sync requires a local data manager")

        local = self.data_mgr.load_local_data()
        local_counts = self.data_mgr.load_play_counts()

        result = self.download(progress_callback)
        if result is None:
            raise SyncTotalFailure("Remote sync data could not be read")

        remote, remote_counts = result
        report = self.last_download_report

        if not report.found:
            if report.unreadable:
                raise SyncTotalFailure(
                    f"Remote sync files could not be read: {', '.join(report.unreadable)}"
                )
            logger.info("No remote sync data found - uploading local state")
            self.upload(local, local_counts, progress_callback)
            return local

        if strategy is None:
            strategy = local.settings.webdav.conflict_strategy

        winner = resolve_conflict(local, remote, strategy)

        if winner is local:
            logger.info(f"Local data wins (strategy: {strategy}) - uploading")
            self.upload(local, local_counts, progress_callback)
            return local

        logger.info(f"Remote data wins (strategy: {strategy}) - replacing local data")
        saved = self.data_mgr.replace_data(self._keep_local_settings(remote, local, report))
        self.data_mgr.save_play_counts(remote_counts)
        return saved

    def download_to_local(self, progress_callback: ProgressCallback = None) -> AppData:
        """
        Download remote state and make it the local state.

        Local data is left untouched when the remote holds no sync files.

        Args:
            progress_callback: Optional callback (message, current, total)

        Returns:
            The snapshot that is now the local state

        Raises:
            SyncTotalFailure: If remote state cannot be established or the
                              remote has no sync data
        """
        if self.data_mgr is None:
            raise SyncTotalFailure("Download requires a local data manager")

        result = self.download(progress_callback)
        if result is None:
            raise SyncTotalFailure("Remote sync data could not be read")

        remote, remote_counts = result
        report = self.last_download_report

        if not report.found:
            raise SyncTotalFailure("No remote sync data found - local data kept")

        local = self.data_mgr.load_local_data()
        saved = self.data_mgr.replace_data(self._keep_local_settings(remote, local, report))
        self.data_mgr.save_play_counts(remote_counts)
        logger.info(f"Local data replaced from remote ({len(report.found)} entities)")
        return saved

    @staticmethod
    def _keep_local_settings(remote: AppData, local: AppData, report: DownloadReport) -> AppData:
        """Keep local settings (and WebDAV credentials) when the remote has none."""
        if SyncEntity.SETTINGS.value in report.found:
            return remote
        return remote.model_copy(update={"settings": local.settings})

    # ==================== Remote Housekeeping ====================

    def list_remote_files(self) -> List[str]:
        """
        List names of items in the remote sync folder.

        Returns:
            Item names, or an empty list if the folder cannot be listed
        """
        try:
            items = self.api.get_directory_contents(REMOTE_ROOT, deep=False)
        except MusicSyncAPIError as e:
            logger.warning(f"Cannot list remote folder {REMOTE_ROOT}: {e}")
            return []
        return [item.name for item in items]

    def delete_legacy_files(self) -> bool:
        """
        Delete the deprecated single-file data document.

        Returns:
            True if the legacy file is gone, False if deletion failed
        """
        try:
            self.api.delete_file(LEGACY_DATA_FILE_PATH)
        except MusicSyncNotFoundError:
            logger.debug("No legacy data file to delete")
        except MusicSyncAPIError as e:
            logger.warning(f"Failed to delete legacy data file: {e}")
            return False
        return True

    def migrate_legacy_data(self, progress_callback: ProgressCallback = None) -> bool:
        """
        Convert the legacy single-file document into entity files.

        Skipped when the multi-file layout already exists on the remote, so
        newer data is never replaced by the legacy document.

        Args:
            progress_callback: Optional callback (message, current, total)

        Returns:
            True if legacy data was migrated and removed, False if there was
            nothing to migrate

        Raises:
            SyncReadError: If the legacy file cannot be read
            SyncWriteError: If uploading the migrated data fails
        """
        existing = set(self.list_remote_files())
        entity_files = {path.rsplit("/", 1)[-1] for path in DEFAULT_FILE_PATHS.values()}
        if existing & entity_files:
            logger.info("Remote already uses per-entity files - legacy migration skipped")
            return False

        try:
            raw = self.api.get_file_contents(LEGACY_DATA_FILE_PATH)
        except MusicSyncNotFoundError:
            logger.info("No legacy data file found")
            return False
        except MusicSyncAPIError as e:
            raise SyncReadError(f"Reading legacy data file failed: {e}") from e

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict) or not _is_supported_version(parsed.get("version")):
                logger.warning("Legacy data file has an unsupported version - not migrated")
                return False
            merged = create_default_data().to_json_dict()
            merged.update(parsed)
            legacy = AppData.model_validate(merged)
        except ValueError as e:
            logger.warning(f"Legacy data file is unreadable - not migrated: {e}")
            return False

        play_counts = self.data_mgr.load_play_counts() if self.data_mgr else {}
        self.upload(legacy, play_counts, progress_callback)
        self.delete_legacy_files()
        logger.info("Legacy data migrated to per-entity files")
        return True
