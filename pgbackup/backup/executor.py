"""
Backup executor - orchestrates the complete backup workflow.

Workflow:
1. Build the run context (date, retention class, destination)
2. Prune expired directories of the same retention class
3. Create the destination directory
4. Dump the database
5. Compress the artifact (tar and plain formats only)
6. Dump globals (if enabled)

Any fatal stage error stops the workflow; the result records which stage
failed. Side effects of earlier stages are left on disk.
"""

import os
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from pgbackup.config import Config
from pgbackup.settings import Settings
from .context import RunContext, create_run_context
from .retention import RetentionManager
from .destination import ensure_destination
from .dump import PgDumpRunner, artifact_path, get_artifact_size, GLOBALS_FILENAME
from .compression import SevenZipArchiver, archive_policy, compress_artifact

logger = logging.getLogger(__name__)

SUCCESS = 'success'
FAILED = 'failed'


@dataclass
class BackupResult:
    """Outcome of one backup run"""

    database: str
    started_at: datetime
    status: str = 'running'
    retention_class: Optional[str] = None
    destination: Optional[str] = None
    completed_at: Optional[datetime] = None
    failed_stage: Optional[str] = None
    error_message: Optional[str] = None
    output: str = ''
    artifact_path: Optional[str] = None
    archive_path: Optional[str] = None
    globals_path: Optional[str] = None
    file_size_bytes: Optional[int] = None
    pruned: List[str] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCESS


class BackupExecutor:
    """
    Orchestrates the complete backup workflow for one settings file.
    """

    def __init__(self, settings: Settings, config=Config, dumper=None, archiver=None, now: Optional[datetime] = None):
        """
        Initialize backup executor.

        Args:
            settings: Loaded settings
            config: Runtime configuration class (external binaries)
            dumper: Dump capability (defaults to PgDumpRunner)
            archiver: Archive capability (defaults to SevenZipArchiver)
            now: Run time (defaults to datetime.now() at execute())
        """
        self.settings = settings
        self.config = config
        self.dumper = dumper or PgDumpRunner(config.PG_DUMP_BIN, config.PG_DUMPALL_BIN)
        self.archiver = archiver or SevenZipArchiver(config.SEVENZIP_BIN, config.ARCHIVE_TYPE)
        self.now = now
        self.context: Optional[RunContext] = None
        self.result: Optional[BackupResult] = None
        self.logs = []

    def execute(self) -> BackupResult:
        """
        Execute the backup run.

        Returns:
            BackupResult with status 'success' or 'failed'
        """
        self.context = create_run_context(self.settings, self.now)
        self.result = BackupResult(
            database=self.settings.database,
            started_at=self.context.now,
            retention_class=self.context.retention_class,
            destination=self.context.destination
        )

        self._log(f"Starting backup of database '{self.settings.database}' ({self.context.retention_class})")

        try:
            self._execute_workflow()

            self.result.status = SUCCESS
            self._log("Backup completed successfully")

        except Exception as e:
            self.result.status = FAILED
            self.result.failed_stage = getattr(e, 'stage', 'unexpected')
            self.result.error_message = str(e)
            self.result.output = getattr(e, 'output', '')
            self._log(f"Backup failed during {self.result.failed_stage}: {e}", logging.ERROR)
            if self.result.output:
                self._log(self.result.output.rstrip(), logging.ERROR)

        finally:
            self.result.completed_at = datetime.now()
            self.result.logs = self.logs

        return self.result

    def _execute_workflow(self):
        """Execute the main backup workflow steps."""
        # Step 1: Prune expired backups of this retention class
        self._prune()

        # Step 2: Create destination directory
        self._log(f"Destination directory: {self.context.destination}")
        ensure_destination(self.context.destination)

        # Step 3: Dump database
        artifact = self._dump()

        # Step 4: Compress (tar and plain formats)
        final_path = self._compress(artifact)
        try:
            self.result.file_size_bytes = get_artifact_size(final_path)
            self._log(f"Backup size: {self.result.file_size_bytes / 1024 / 1024:.2f} MB")
        except OSError as e:
            self._log(f"Warning: cannot read size of {final_path}: {e}", logging.WARNING)

        # Step 5: Globals
        if self.settings.globals_enabled:
            self._dump_globals()
        else:
            self._log("Globals backup not enabled, skipping")

    def _prune(self):
        manager = RetentionManager(self.settings.backup_dir)
        summary = manager.prune(self.context.retention_class, self.context.keep_days, self.context.now)
        self.logs.extend(manager.logs)
        self.result.pruned = summary['deleted']

    def _dump(self) -> str:
        """
        Run pg_dump into the destination directory.

        Returns:
            Path to the dump artifact

        Raises:
            DumpError: If pg_dump fails
        """
        artifact = artifact_path(self.context.destination, self.settings)
        self._log(f"Dumping database (format: {self.settings.format or 'default'}) to {artifact}")

        self.dumper.dump(self.settings, artifact)

        self.result.artifact_path = artifact
        self._log(f"Backup written: {artifact}")
        return artifact

    def _compress(self, artifact: str) -> str:
        """
        Compress the artifact when the format has an archive policy.

        Returns:
            Path of the final output (archive or untouched artifact)

        Raises:
            CompressionError: If the archiver fails
        """
        policy = archive_policy(self.settings.format)
        if policy is None:
            self._log(f"Compression skipped for format '{self.settings.format}'")
            return artifact

        archive = policy(artifact, self.settings, self.context)
        self._log(f"Compressing backup to {archive}")
        compress_artifact(artifact, archive, self.archiver)
        self.result.archive_path = archive

        if os.path.exists(artifact):
            self._log(f"Warning: uncompressed artifact left in place: {artifact}", logging.WARNING)
        self._log(f"Backup compressed: {archive}")
        return archive

    def _dump_globals(self):
        globals_path = os.path.join(self.context.destination, GLOBALS_FILENAME)
        self._log(f"Dumping globals to {globals_path}")
        self.dumper.dump_globals(self.settings, globals_path)
        self.result.globals_path = globals_path

    def _log(self, message: str, level: int = logging.INFO):
        """
        Add a log message with timestamp.

        Args:
            message: Log message
            level: Logging level for the console/file logger
        """
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        self.logs.append(f"[{timestamp}] {message}")
        logger.log(level, message)


def execute_backup(settings: Settings, config=Config, **kwargs) -> BackupResult:
    """
    Execute a backup run for the given settings.

    Returns:
        BackupResult with execution results
    """
    executor = BackupExecutor(settings, config, **kwargs)
    return executor.execute()

