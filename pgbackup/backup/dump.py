"""
Dump pipeline.

Builds and runs pg_dump for the configured output format. The database
password is passed through the PGPASSWORD environment variable, never
on the command line.
"""

import os
import logging
import subprocess
from pathlib import Path
from typing import List

from pgbackup.errors import BackupError
from pgbackup.settings import Settings

logger = logging.getLogger(__name__)


class DumpError(BackupError):
    """Raised when the external dump tool fails."""
    stage = 'dump'


# Format code -> artifact extension; anything else is plain SQL
FORMAT_EXTENSIONS = {
    'c': '.dump',
    'd': '.dump',
    't': '.tar',
}

GLOBALS_FILENAME = 'globals.sql'


def artifact_extension(format_code: str) -> str:
    """Map a pg_dump format code to the artifact extension."""
    return FORMAT_EXTENSIONS.get(format_code, '.sql')


def artifact_path(destination: str, settings: Settings) -> str:
    """Path of the dump artifact for a run."""
    return os.path.join(destination, settings.database + artifact_extension(settings.format))


def _connection_args(settings: Settings) -> List[str]:
    return [
        f"--host={settings.hostname}",
        f"--port={settings.db_port}",
        f"--username={settings.user_db}",
    ]


def build_pg_dump_command(settings: Settings, output_path: str, binary: str = 'pg_dump') -> List[str]:
    """
    Build the pg_dump argument list.

    Args:
        settings: Loaded settings
        output_path: Artifact path passed with -f
        binary: pg_dump executable

    Returns:
        Argument list for subprocess (no shell)
    """
    cmd = [binary] + _connection_args(settings)
    cmd.append(f"--format={settings.format}")

    if settings.is_schema_only:
        cmd.append('--schema-only')

    cmd.extend(['-f', output_path, settings.database])
    return cmd


def build_pg_dumpall_command(settings: Settings, output_path: str, binary: str = 'pg_dumpall') -> List[str]:
    """Build the pg_dumpall argument list for a globals-only dump."""
    return [binary] + _connection_args(settings) + ['--globals-only', '-f', output_path]


class PgDumpRunner:
    """
    Runs pg_dump / pg_dumpall as direct child processes.

    Combined stdout/stderr is captured and attached to DumpError on
    failure.
    """

    def __init__(self, pg_dump_bin: str = 'pg_dump', pg_dumpall_bin: str = 'pg_dumpall'):
        self.pg_dump_bin = pg_dump_bin
        self.pg_dumpall_bin = pg_dumpall_bin

    def dump(self, settings: Settings, output_path: str) -> str:
        """
        Dump the configured database.

        Args:
            settings: Loaded settings
            output_path: Artifact path

        Returns:
            Captured tool output

        Raises:
            DumpError: If pg_dump cannot be started or exits non-zero
        """
        cmd = build_pg_dump_command(settings, output_path, self.pg_dump_bin)
        return self._run(cmd, settings.pg_password, 'dump')

    def dump_globals(self, settings: Settings, output_path: str) -> str:
        """Dump roles and tablespaces with pg_dumpall --globals-only."""
        cmd = build_pg_dumpall_command(settings, output_path, self.pg_dumpall_bin)
        return self._run(cmd, settings.pg_password, 'globals')

    def _run(self, cmd: List[str], password: str, stage: str) -> str:
        logger.info(f"Executing: {' '.join(cmd)}")

        env = os.environ.copy()
        env['PGPASSWORD'] = password

        try:
            completed = subprocess.run(
                cmd,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True
            )
        except OSError as e:
            raise DumpError(f"Failed to start {cmd[0]}: {e}", stage=stage)

        if completed.returncode != 0:
            raise DumpError(
                f"{cmd[0]} exited with status {completed.returncode}",
                output=completed.stdout or '',
                stage=stage
            )

        return completed.stdout or ''


def get_artifact_size(path: str) -> int:
    """
    Size of a dump artifact in bytes.

    Directory-format dumps are summed over their files.
    """
    target = Path(path)
    if target.is_dir():
        return sum(item.stat().st_size for item in target.rglob('*') if item.is_file())
    return target.stat().st_size
