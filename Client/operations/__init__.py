"""
MusicSync Client - Operations Package

This package contains the sync operations classes and functions.
"""

from .sync_operations import SyncOperations, DownloadReport
from .conflict_resolver import resolve_conflict

__all__ = ['SyncOperations', 'DownloadReport', 'resolve_conflict']
