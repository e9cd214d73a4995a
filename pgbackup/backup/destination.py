"""
Destination directory handling.

Each run writes into ``<backup_dir>/<YYYY-MM-DD>-<suffix>``.
"""

import os

from pgbackup.errors import BackupError


class DestinationError(BackupError):
    """Raised when the destination directory cannot be created."""
    stage = 'destination'


def resolve_destination(backup_dir: str, run_date: str, suffix: str) -> str:
    """Build the destination directory path for a run."""
    return os.path.join(backup_dir, f"{run_date}-{suffix}")


def ensure_destination(path: str) -> str:
    """
    Create the destination directory (and parents) if it does not exist.

    Args:
        path: Destination directory

    Returns:
        The same path

    Raises:
        DestinationError: If the directory cannot be created
    """
    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except PermissionError as e:
        raise DestinationError(f"Permission denied creating {path}: {e}")
    except OSError as e:
        raise DestinationError(f"Failed to create destination directory {path}: {e}")

    return path
