"""
Settings file loader.

The settings file is plain text with one KEY=VALUE pair per line. Blank
lines and lines starting with '#' are ignored, keys and values are
whitespace-trimmed and unknown keys are skipped. No validation happens
here: bad values surface later as external tool failures.
"""

import re
from dataclasses import dataclass, fields
from typing import List

from pgbackup.errors import BackupError


class SettingsError(BackupError):
    """Raised when the settings file cannot be read."""
    stage = 'config'


_INT_PATTERN = re.compile(r'^[+-]?[0-9]+$')

# Signed 64-bit range; values outside it count as malformed
_INT_MAX = 2 ** 63 - 1

_TRUTHY = ('yes', 'true', '1', 'on')


@dataclass
class Settings:
    """Backup settings loaded from the settings file"""

    backup_user: str = ''
    hostname: str = ''
    db_port: str = ''
    user_db: str = ''
    pg_password: str = ''
    database: str = ''
    backup_dir: str = ''
    schema_only_list: str = ''
    enable_custom_backups: str = ''
    enable_plain_backups: str = ''
    enable_globals_backups: str = ''
    day_of_week_to_keep: int = 0
    days_to_keep: int = 0
    weeks_to_keep: int = 0
    format: str = ''

    def __repr__(self):
        return f'<Settings database={self.database} host={self.hostname} format={self.format}>'

    @property
    def schema_only_databases(self) -> List[str]:
        """Database names listed in SCHEMA_ONLY_LIST (comma or space separated)."""
        return [name for name in re.split(r'[,\s]+', self.schema_only_list) if name]

    @property
    def is_schema_only(self) -> bool:
        return bool(self.database) and self.database in self.schema_only_databases

    @property
    def globals_enabled(self) -> bool:
        return self.enable_globals_backups.lower() in _TRUTHY


# Settings file key -> Settings field
SETTINGS_KEYS = {
    'BACKUP_USER': 'backup_user',
    'HOSTNAME': 'hostname',
    'DBPORT': 'db_port',
    'USERDB': 'user_db',
    'PGPASSWORD': 'pg_password',
    'DATABASE': 'database',
    'BACKUP_DIR': 'backup_dir',
    'SCHEMA_ONLY_LIST': 'schema_only_list',
    'ENABLE_CUSTOM_BACKUPS': 'enable_custom_backups',
    'ENABLE_PLAIN_BACKUPS': 'enable_plain_backups',
    'ENABLE_GLOBALS_BACKUPS': 'enable_globals_backups',
    'DAY_OF_WEEK_TO_KEEP': 'day_of_week_to_keep',
    'DAYS_TO_KEEP': 'days_to_keep',
    'WEEKS_TO_KEEP': 'weeks_to_keep',
    'FORMAT': 'format',
}

_INT_FIELDS = {f.name for f in fields(Settings) if f.type is int}


def parse_int(value: str) -> int:
    """Parse a signed decimal integer; malformed values become 0."""
    if _INT_PATTERN.match(value):
        number = int(value)
        if -_INT_MAX - 1 <= number <= _INT_MAX:
            return number
    return 0


def parse_settings(text: str) -> Settings:
    """
    Parse settings file contents.

    Args:
        text: Raw file contents

    Returns:
        Settings with absent keys left at their zero-value defaults
    """
    settings = Settings()

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        key, sep, value = line.partition('=')
        if not sep:
            continue

        field_name = SETTINGS_KEYS.get(key.strip())
        if field_name is None:
            continue

        value = value.strip()
        if field_name in _INT_FIELDS:
            setattr(settings, field_name, parse_int(value))
        else:
            setattr(settings, field_name, value)

    return settings


def load_settings(path: str) -> Settings:
    """
    Load settings from a KEY=VALUE file.

    Args:
        path: Path to the settings file

    Returns:
        Parsed Settings

    Raises:
        SettingsError: If the file is missing or unreadable
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except OSError as e:
        raise SettingsError(f"Failed to load settings from {path}: {e}")

    return parse_settings(text)
