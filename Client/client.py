"""
MusicSync Client - Main Entry Point

This is the main entry point for the MusicSync client. It synchronizes
the music player's settings, favorites, history, playlists and play counts
with a WebDAV store.

Author: MusicSync Project
"""

import sys
import argparse
import getpass

from models import ConflictStrategy


def main():
    """
    Main entry point for MusicSync client.

    Parses command-line arguments and runs either the configure step or
    one sync operation (test, upload, download, sync, list, migrate, cleanup).
    """
    parser = argparse.ArgumentParser(
        description='MusicSync - Music Player WebDAV Synchronization Client'
    )
    subparsers = parser.add_subparsers(dest='operation', required=True)

    configure = subparsers.add_parser('configure', help='Store WebDAV connection settings')
    configure.add_argument('--url', required=True, help='WebDAV root URL')
    configure.add_argument('--username', required=True, help='WebDAV username')
    configure.add_argument('--password', help='WebDAV password (prompted if omitted)')
    configure.add_argument('--strategy', choices=[s.value for s in ConflictStrategy],
                           help='Conflict strategy for sync')
    configure.add_argument('--proxy-url', help='Forwarding proxy base URL ("" to disable)')

    for name, help_text in [
        ('test', 'Check the WebDAV connection'),
        ('upload', 'Upload local data to the WebDAV store'),
        ('download', 'Replace local data with the WebDAV copy'),
        ('list', 'List files in the remote sync folder'),
        ('migrate', 'Convert legacy data.json into per-entity files'),
        ('cleanup', 'Delete the legacy data.json file'),
    ]:
        subparsers.add_parser(name, help=help_text)

    sync = subparsers.add_parser('sync', help='Download, resolve conflicts, and upload if local wins')
    sync.add_argument('--strategy', choices=[s.value for s in ConflictStrategy],
                      help='Conflict strategy (overrides stored setting)')

    args = parser.parse_args()

    if args.operation == 'configure':
        from cli import configure_webdav
        password = args.password if args.password is not None else getpass.getpass('WebDAV password: ')
        return configure_webdav(args.url, args.username, password, args.strategy, args.proxy_url)

    from cli import run_cli_operation
    return run_cli_operation(args.operation, getattr(args, 'strategy', None))


if __name__ == '__main__':
    sys.exit(main())
