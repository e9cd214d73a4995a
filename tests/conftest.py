"""
Shared pytest fixtures for pgbackup tests.

This module provides fixtures for:
- Settings files and Settings records
- Backup root directories with aged retention directories
- Fake dump and archive capabilities that write real files
"""

import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from pgbackup.settings import Settings
from pgbackup.backup.dump import DumpError
from pgbackup.backup.compression import CompressionError


SETTINGS_TEXT = """\
# pgbackup test settings
BACKUP_USER=postgres
HOSTNAME=db.example.com
DBPORT=5432
USERDB=backup
PGPASSWORD=s3cret
DATABASE=orders
BACKUP_DIR={backup_dir}
SCHEMA_ONLY_LIST=
ENABLE_CUSTOM_BACKUPS=yes
ENABLE_PLAIN_BACKUPS=yes
ENABLE_GLOBALS_BACKUPS=no
DAY_OF_WEEK_TO_KEEP=5
DAYS_TO_KEEP=7
WEEKS_TO_KEEP=5
FORMAT=c
"""


class FakeDumper:
    """Dump capability that writes a placeholder artifact."""

    def __init__(self, fail: bool = False, output: str = 'pg_dump: error: connection refused'):
        self.fail = fail
        self.output = output
        self.calls = []
        self.globals_calls = []

    def dump(self, settings, output_path):
        self.calls.append(output_path)
        if self.fail:
            raise DumpError("pg_dump exited with status 1", output=self.output)
        if settings.format == 'd':
            os.makedirs(output_path, exist_ok=True)
            Path(output_path, 'toc.dat').write_bytes(b'toc')
        else:
            Path(output_path).write_text(f'-- dump of {settings.database}\n')
        return ''

    def dump_globals(self, settings, output_path):
        self.globals_calls.append(output_path)
        Path(output_path).write_text('-- globals\n')
        return ''


class FakeArchiver:
    """Archive capability that writes the archive file."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def compress(self, source_path, archive_path):
        self.calls.append((source_path, archive_path))
        if self.fail:
            raise CompressionError("7z exited with status 2", output='ERROR: disk full')
        Path(archive_path).write_bytes(b'7z\xbc\xaf\x27\x1c' + Path(source_path).read_bytes())
        return ''


def _set_age(path, now: datetime, days: float):
    """Set a path's modification time to `days` before `now`."""
    timestamp = (now - timedelta(days=days)).timestamp()
    os.utime(path, (timestamp, timestamp))


@pytest.fixture
def set_age():
    """Helper that ages a path relative to a reference time."""
    return _set_age


@pytest.fixture
def backup_root(tmp_path):
    """Empty backup root directory."""
    root = tmp_path / 'backups'
    root.mkdir()
    return root


@pytest.fixture
def settings_file(tmp_path, backup_root):
    """Settings file pointing at the test backup root."""
    path = tmp_path / 'pgbackup.cfg'
    path.write_text(SETTINGS_TEXT.format(backup_dir=backup_root))
    return path


@pytest.fixture
def settings(backup_root):
    """Settings record for database 'orders' in custom format."""
    return Settings(
        backup_user='postgres',
        hostname='db.example.com',
        db_port='5432',
        user_db='backup',
        pg_password='s3cret',
        database='orders',
        backup_dir=str(backup_root),
        enable_custom_backups='yes',
        enable_plain_backups='yes',
        enable_globals_backups='no',
        day_of_week_to_keep=5,
        days_to_keep=7,
        weeks_to_keep=5,
        format='c'
    )


@pytest.fixture
def fake_dumper():
    return FakeDumper()


@pytest.fixture
def fake_archiver():
    return FakeArchiver()


@pytest.fixture
def aged_backups(backup_root):
    """
    Create retention directories with known ages relative to 2024-03-01 12:00.

    Returns:
        Tuple of (now, dict of name -> path)
    """
    now = datetime(2024, 3, 1, 12, 0, 0)
    layout = {
        '2024-02-20-daily': 10,
        '2024-02-27-daily': 3,
        '2024-02-20-weekly': 10,
        '2023-12-01-weekly': 91,
    }
    paths = {}
    for name, days in layout.items():
        path = backup_root / name
        path.mkdir()
        (path / 'orders.dump').write_text('data')
        _set_age(path, now, days)
        paths[name] = path

    return now, paths


@pytest.fixture
def failing_dumper():
    return FakeDumper(fail=True)


@pytest.fixture
def failing_archiver():
    return FakeArchiver(fail=True)
