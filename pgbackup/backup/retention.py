"""
Retention policy for backup directories.

Each run is classified as "weekly" (on the configured day of week) or
"daily". Before a new backup is written, directories of the same class
under the backup root that are older than the class keep window are
removed. The two classes never touch each other's directories.
"""

import os
import shutil
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, NamedTuple

logger = logging.getLogger(__name__)

WEEKLY = 'weekly'
DAILY = 'daily'


class RetentionClass(NamedTuple):
    suffix: str
    keep_days: int


def weekday_index(now: datetime) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return now.isoweekday() % 7


def classify(now: datetime, day_of_week_to_keep: int, days_to_keep: int, weeks_to_keep: int) -> RetentionClass:
    """
    Decide the retention class of a run.

    Args:
        now: Run date/time
        day_of_week_to_keep: Weekly-retention day (0=Sunday .. 6=Saturday)
        days_to_keep: Keep window for daily backups
        weeks_to_keep: Keep window for weekly backups, in weeks

    Returns:
        RetentionClass(suffix, keep_days). Configured windows are passed
        through unchanged, even when zero or negative.
    """
    if weekday_index(now) == day_of_week_to_keep:
        return RetentionClass(WEEKLY, weeks_to_keep * 7)
    return RetentionClass(DAILY, days_to_keep)


def compute_cutoff(now: datetime, keep_days: int) -> datetime:
    """
    Cutoff instant for a keep window.

    Windows reaching past the representable date range clamp to
    datetime.min (nothing expires) or datetime.max (everything expires).
    """
    try:
        return now - timedelta(days=keep_days)
    except OverflowError:
        return datetime.min if keep_days > 0 else datetime.max


class RetentionManager:
    """
    Prunes expired retention directories under a backup root.

    Candidates are the immediate children named ``*-<suffix>``; each one
    is removed wholesale when its modification time is strictly before
    ``now - keep_days``. Errors on individual entries are logged and
    skipped.
    """

    def __init__(self, backup_dir: str):
        """
        Initialize retention manager.

        Args:
            backup_dir: Backup root directory
        """
        self.backup_dir = Path(backup_dir)
        self.logs = []

    def prune(self, suffix: str, keep_days: int, now: datetime) -> Dict[str, Any]:
        """
        Delete expired directories of one retention class.

        Args:
            suffix: Retention class ('daily' or 'weekly')
            keep_days: Keep window in days
            now: Reference time for the cutoff

        Returns:
            Dict with summary of the pass:
            {
                'cutoff': datetime,
                'deleted': List[str],
                'kept': List[str],
                'errors': List[str]
            }
        """
        cutoff = compute_cutoff(now, keep_days)
        summary = {
            'cutoff': cutoff,
            'deleted': [],
            'kept': [],
            'errors': []
        }

        self._log(f"Pruning '{suffix}' backups in {self.backup_dir} older than {cutoff:%Y-%m-%d %H:%M:%S}")

        for candidate in sorted(self.backup_dir.glob(f'*-{suffix}')):
            try:
                modified = datetime.fromtimestamp(candidate.stat().st_mtime)
            except OSError as e:
                self._log(f"Skipping {candidate.name}: cannot read modification time: {e}")
                continue

            if not modified < cutoff:
                summary['kept'].append(str(candidate))
                continue

            try:
                self._remove(candidate)
                summary['deleted'].append(str(candidate))
                self._log(f"Deleted expired backup: {candidate.name}")
            except OSError as e:
                error_msg = f"Failed to delete {candidate.name}: {e}"
                self._log(error_msg)
                summary['errors'].append(error_msg)

        self._log(
            f"Pruning complete. "
            f"Deleted: {len(summary['deleted'])}, "
            f"Kept: {len(summary['kept'])}, "
            f"Errors: {len(summary['errors'])}"
        )

        return summary

    @staticmethod
    def _remove(path: Path):
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            os.remove(path)

    def _log(self, message: str):
        """
        Add a log message with timestamp.

        Args:
            message: Log message
        """
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        self.logs.append(f"[{timestamp}] {message}")
        logger.info(message)


def prune_backups(backup_dir: str, suffix: str, keep_days: int, now: datetime) -> Dict[str, Any]:
    """
    Prune one retention class under a backup root.

    Returns:
        Summary dict from RetentionManager.prune(), plus its 'logs'
    """
    manager = RetentionManager(backup_dir)
    summary = manager.prune(suffix, keep_days, now)
    summary['logs'] = manager.logs
    return summary
