"""
Compression stage for dump artifacts.

Wraps a finished artifact in a 7-Zip archive with the external ``7z``
tool, then removes the uncompressed original. Which artifacts are
compressed, and under what name, is decided by an archive naming policy:

- tar: ``<artifact>.7z`` (tar-format dumps)
- plain: ``<destination>/<database>_<run date>.7z`` (plain SQL dumps)

Other formats (custom, directory) are not compressed.
"""

import os
import logging
import subprocess
from typing import Callable, Optional

from pgbackup.errors import BackupError
from pgbackup.settings import Settings
from .context import RunContext

logger = logging.getLogger(__name__)


class CompressionError(BackupError):
    """Raised when archive creation fails."""
    stage = 'compression'


class SevenZipArchiver:
    """Adds a single file to a new archive using the 7z command line tool."""

    def __init__(self, binary: str = '7z', archive_type: str = '7z'):
        self.binary = binary
        self.archive_type = archive_type

    def build_command(self, source_path: str, archive_path: str):
        return [self.binary, 'a', f"-t{self.archive_type}", archive_path, source_path]

    def compress(self, source_path: str, archive_path: str) -> str:
        """
        Create archive_path containing source_path.

        Returns:
            Captured tool output

        Raises:
            CompressionError: If the archiver cannot be started or exits non-zero
        """
        cmd = self.build_command(source_path, archive_path)
        logger.info(f"Executing: {' '.join(cmd)}")

        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True
            )
        except OSError as e:
            raise CompressionError(f"Failed to start {self.binary}: {e}")

        if completed.returncode != 0:
            raise CompressionError(
                f"{self.binary} exited with status {completed.returncode}",
                output=completed.stdout or ''
            )

        return completed.stdout or ''


def tar_archive_name(artifact: str, settings: Settings, context: RunContext) -> str:
    return artifact + '.7z'


def plain_archive_name(artifact: str, settings: Settings, context: RunContext) -> str:
    return os.path.join(context.destination, f"{settings.database}_{context.run_date}.7z")


# Format code -> archive naming policy
ARCHIVE_POLICIES = {
    't': tar_archive_name,
    'p': plain_archive_name,
}


def archive_policy(format_code: str) -> Optional[Callable[[str, Settings, RunContext], str]]:
    """Return the naming policy for a format, or None when it is not compressed."""
    return ARCHIVE_POLICIES.get(format_code)


def compress_artifact(source_path: str, archive_path: str, archiver: SevenZipArchiver) -> str:
    """
    Compress an artifact and remove the original.

    On archiver failure the original is left in place. Failure to remove
    the original after a successful compression is logged, not raised.

    Args:
        source_path: Uncompressed artifact
        archive_path: Archive to create
        archiver: Archiver capability

    Returns:
        archive_path

    Raises:
        CompressionError: If the archiver fails
    """
    archiver.compress(source_path, archive_path)

    try:
        os.remove(source_path)
    except OSError as e:
        logger.warning(f"Failed to remove uncompressed artifact {source_path}: {e}")

    return archive_path
