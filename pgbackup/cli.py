"""
Command line entry point.

Runs one backup and exits with a status code describing the outcome,
so that the calling scheduler (cron, systemd timer, Task Scheduler) can
tell a failed run from a successful one.
"""

import os
import sys
import logging
import argparse

from pgbackup import configure_logging, __version__
from pgbackup.config import config as config_by_name
from pgbackup.errors import BackupError
from pgbackup.settings import load_settings
from pgbackup.backup.executor import execute_backup

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = 'pgbackup.cfg'

EXIT_SUCCESS = 0
EXIT_CODES = {
    'unexpected': 1,
    'config': 2,
    'destination': 3,
    'dump': 4,
    'compression': 5,
    'globals': 6,
}


def exit_code_for(stage) -> int:
    """Map a failed stage name to a process exit code."""
    if stage is None:
        return EXIT_SUCCESS
    return EXIT_CODES.get(stage, EXIT_CODES['unexpected'])


def default_settings_path() -> str:
    """pgbackup.cfg beside the launched script."""
    script_dir = os.path.dirname(os.path.abspath(sys.argv[0]))
    return os.path.join(script_dir, DEFAULT_SETTINGS_FILE)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pgbackup',
        description='Rotated PostgreSQL backups with daily/weekly retention.'
    )
    parser.add_argument('--config', help='Settings file (KEY=VALUE); defaults to pgbackup.cfg beside the script')
    parser.add_argument('--env', default=os.environ.get('PGBACKUP_ENV', 'production'),
                        choices=sorted(config_by_name), help='Runtime configuration profile')
    parser.add_argument('--log-dir', help='Directory for the rotating log file')
    parser.add_argument('--history-db', help='SQLAlchemy URL of the run history database')
    parser.add_argument('--history', nargs='?', type=int, const=10, metavar='N',
                        help='Show the last N recorded runs and exit')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def _make_config(args):
    """Subclass the selected profile with command line overrides applied."""
    base = config_by_name[args.env]
    overrides = {}
    if args.log_dir:
        overrides['LOG_DIR'] = args.log_dir
    if args.history_db:
        overrides['HISTORY_DATABASE_URL'] = args.history_db
    return type('RuntimeConfig', (base,), overrides)


def show_history(database_url: str, limit: int) -> int:
    from pgbackup.history import HistoryRecorder

    if not database_url:
        print("Run history is not configured (set PGBACKUP_HISTORY_URL or --history-db)")
        return EXIT_CODES['config']

    recorder = HistoryRecorder(database_url)
    try:
        for record in recorder.recent(limit):
            stage = f" ({record.failed_stage})" if record.failed_stage else ''
            print(
                f"{record.started_at:%Y-%m-%d %H:%M:%S}  {record.database}  "
                f"{record.retention_class or '-'}  {record.status}{stage}  "
                f"{record.archive_path or record.artifact_path or ''}"
            )
    finally:
        recorder.close()
    return EXIT_SUCCESS


def record_history(database_url: str, result):
    from pgbackup.history import HistoryRecorder

    try:
        recorder = HistoryRecorder(database_url)
        try:
            recorder.record(result)
        finally:
            recorder.close()
    except Exception as e:
        logger.error(f"Failed to record backup history: {e}")


def main(argv=None) -> int:
    """
    Run a backup.

    Returns:
        Process exit code (0 on success, stage-specific code on failure)
    """
    args = build_parser().parse_args(argv)
    config = _make_config(args)
    configure_logging(config)

    if args.history is not None:
        return show_history(config.HISTORY_DATABASE_URL, args.history)

    settings_path = args.config or config.CONFIG_FILE or default_settings_path()
    try:
        settings = load_settings(settings_path)
    except BackupError as e:
        logger.error(f"Error loading config: {e}")
        return exit_code_for(e.stage)

    logger.info(f"Loaded settings from {settings_path}")

    result = execute_backup(settings, config)

    if config.HISTORY_DATABASE_URL:
        record_history(config.HISTORY_DATABASE_URL, result)

    if result.succeeded:
        logger.info(f"Backup finished: {result.archive_path or result.artifact_path}")
    else:
        logger.error(f"Backup failed ({result.failed_stage}): {result.error_message}")

    return exit_code_for(result.failed_stage)


if __name__ == '__main__':
    sys.exit(main())
