"""
MusicSync Client - Conflict Resolution

Chooses which of two whole snapshots is authoritative when both local
and remote state exist. Snapshots are compared as a unit, never merged
field by field.

Author: MusicSync Project
"""

from typing import Optional

from models import AppData, ConflictStrategy


def resolve_conflict(local: AppData, remote: AppData, strategy: Optional[str]) -> AppData:
    """
    Resolve a local/remote snapshot conflict.

    Args:
        local: Snapshot owned by the local store
        remote: Snapshot established by the last download
        strategy: "client_wins", "server_wins", or anything else for
                  last-writer-wins on updatedAt (remote wins ties)

    Returns:
        The winning snapshot (one of the two arguments, unmodified)
    """
    if strategy == ConflictStrategy.CLIENT_WINS.value:
        return local
    if strategy == ConflictStrategy.SERVER_WINS.value:
        return remote
    return remote if remote.updated_at >= local.updated_at else local
