"""
MusicSync Client - CLI Mode Module

Implements the command-line interface for headless/automated sync.
Loads configuration and local state, executes one operation against the
WebDAV store, and logs to a timestamped file.

Author: MusicSync Project
"""

import sys
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from managers import ConfigManager, LocalStore, AppDataManager
from api import WebDAVAPI
from exceptions import MusicSyncAPIError, MusicSyncConfigError
from operations import SyncOperations


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_CONNECTION_ERROR = 3

OPERATIONS = ["test", "upload", "download", "sync", "list", "migrate", "cleanup"]


def setup_cli_logging(config_manager: ConfigManager) -> Path:
    """
    Setup logging for CLI mode with timestamped log file.

    Creates log file with format: musicsync-YYYY-MM-DD-HH-MM-SS.log
    in a "logs" subdirectory next to the config file.

    Args:
        config_manager: ConfigManager instance for log settings

    Returns:
        Path to the created log file
    """
    log_level = config_manager.get("log_level", "INFO")

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_dir = config_manager.config_file.parent / "logs"
    log_dir.mkdir(exist_ok=True)

    log_file = log_dir / f"musicsync-{timestamp}.log"

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout)  # Also output to console
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info(f"MusicSync CLI Mode - Log file: {log_file}")
    logger.info(f"Log level: {log_level}")

    return log_file


def cleanup_old_logs(config_manager: ConfigManager, current_log: Path):
    """
    Delete log files older than retention period.

    Args:
        config_manager: ConfigManager instance for retention settings
        current_log: Path to current log file (don't delete this)
    """
    logger = logging.getLogger(__name__)
    retention_days = config_manager.get("log_retention_days", 30)

    if retention_days <= 0:
        return  # Retention disabled

    log_dir = current_log.parent
    cutoff_time = datetime.now().timestamp() - (retention_days * 86400)

    deleted_count = 0
    for log_file in log_dir.glob("musicsync-*.log"):
        if log_file == current_log:
            continue

        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1
        except OSError as e:
            logger.warning(f"Failed to delete old log file {log_file}: {e}")

    if deleted_count > 0:
        logger.info(f"Deleted {deleted_count} old log file(s)")


def configure_webdav(url: str, username: str, password: str,
                     strategy: Optional[str] = None, proxy_url: Optional[str] = None,
                     config_manager: Optional[ConfigManager] = None) -> int:
    """
    Store WebDAV connection settings in the local application data.

    Args:
        url: WebDAV root URL
        username: WebDAV username
        password: WebDAV password
        strategy: Optional conflict strategy
        proxy_url: Optional forwarding proxy base URL (stored in config.json)
        config_manager: ConfigManager to use (default: one in the working directory)

    Returns:
        Exit code
    """
    config_mgr = config_manager or ConfigManager()
    try:
        config_mgr.load_config()
        if proxy_url is not None:
            config_mgr.set("proxy_url", proxy_url)
    except MusicSyncConfigError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    store = LocalStore(config_mgr.get("store_path"))
    try:
        data_mgr = AppDataManager(store)
        data = data_mgr.load_local_data()
        webdav_update = {"url": url, "username": username, "password": password}
        if strategy:
            webdav_update["conflict_strategy"] = strategy
        webdav = data.settings.webdav.model_copy(update=webdav_update)
        settings = data.settings.model_copy(update={"webdav": webdav})
        data_mgr.save_local_data(data.model_copy(update={"settings": settings}))
    finally:
        store.close()

    print(f"WebDAV settings saved for {url} (user: {username})")
    return EXIT_SUCCESS


def run_cli_operation(operation: str, strategy_override: Optional[str] = None,
                      config_manager: Optional[ConfigManager] = None) -> int:
    """
    Execute CLI operation.

    Process:
    1. Load configuration and setup logging
    2. Open local store and load WebDAV settings
    3. Create WebDAV client (through the proxy when configured)
    4. Execute requested operation
    5. Return appropriate exit code

    Args:
        operation: One of OPERATIONS (test, upload, download, sync, list, migrate, cleanup)
        strategy_override: Optional conflict strategy for sync
        config_manager: ConfigManager to use (default: one in the working directory)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logger = None
    store = None
    api_client = None

    try:
        config_mgr = config_manager or ConfigManager()
        config_mgr.load_config()
        log_file = setup_cli_logging(config_mgr)
        logger = logging.getLogger(__name__)

        cleanup_old_logs(config_mgr, log_file)

        if operation not in OPERATIONS:
            logger.error(f"Unknown operation: {operation} (expected one of: {', '.join(OPERATIONS)})")
            return EXIT_FAILURE

        logger.info("=" * 60)
        logger.info(f"Starting MusicSync CLI: {operation.upper()}")
        logger.info("=" * 60)

        store = LocalStore(config_mgr.get("store_path"))
        data_mgr = AppDataManager(store)
        webdav_config = data_mgr.load_local_data().settings.webdav

        if not webdav_config.url:
            logger.error("WebDAV is not configured. Run 'configure' first.")
            return EXIT_CONFIG_ERROR

        api_client = WebDAVAPI(
            webdav_config,
            proxy_url=config_mgr.get("proxy_url"),
            verify_ssl=config_mgr.get("verify_ssl", True)
        )
        sync_ops = SyncOperations(api_client, data_mgr)

        def cli_progress_callback(message: str, current: int, total: int):
            if total > 0:
                percentage = (current / total) * 100
                logger.info(f"[{percentage:5.1f}%] {message}")
            else:
                logger.info(message)

        if operation == "test":
            if not sync_ops.test_connection():
                logger.error("Connection test FAILED")
                return EXIT_CONNECTION_ERROR
            logger.info("Connection test succeeded")

        elif operation == "upload":
            sync_ops.upload(data_mgr.load_local_data(), data_mgr.load_play_counts(), cli_progress_callback)

        elif operation == "download":
            sync_ops.download_to_local(cli_progress_callback)

        elif operation == "sync":
            sync_ops.sync(strategy_override, cli_progress_callback)

        elif operation == "list":
            for name in sync_ops.list_remote_files():
                print(name)

        elif operation == "migrate":
            if sync_ops.migrate_legacy_data(cli_progress_callback):
                logger.info("Legacy data migrated")
            else:
                logger.info("Nothing to migrate")

        elif operation == "cleanup":
            if not sync_ops.delete_legacy_files():
                return EXIT_FAILURE

        logger.info("=" * 60)
        logger.info(f"{operation.upper()} COMPLETED SUCCESSFULLY")
        logger.info("=" * 60)
        return EXIT_SUCCESS

    except MusicSyncConfigError as e:
        if logger:
            logger.error(f"Configuration Error: {e}")
        else:
            print(f"Configuration Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    except MusicSyncAPIError as e:
        if logger:
            logger.error(f"Sync Error: {e}")
        else:
            print(f"Sync Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except KeyboardInterrupt:
        if logger:
            logger.warning("Operation cancelled by user (Ctrl+C)")
        else:
            print("\nOperation cancelled by user", file=sys.stderr)
        return EXIT_FAILURE

    finally:
        if api_client:
            api_client.close()
        if store:
            store.close()
