"""
Backup module for pgbackup.

This module handles the core backup functionality including:
- Retention classification and pruning
- Destination directory resolution
- pg_dump execution
- 7-Zip compression
- Execution orchestration
"""

from .executor import BackupExecutor, BackupResult, execute_backup
from .context import RunContext, create_run_context
from .retention import RetentionManager, classify, prune_backups
from .destination import resolve_destination, ensure_destination, DestinationError
from .dump import PgDumpRunner, artifact_extension, DumpError
from .compression import SevenZipArchiver, compress_artifact, CompressionError

__all__ = [
    'BackupExecutor',
    'BackupResult',
    'execute_backup',
    'RunContext',
    'create_run_context',
    'RetentionManager',
    'classify',
    'prune_backups',
    'resolve_destination',
    'ensure_destination',
    'DestinationError',
    'PgDumpRunner',
    'artifact_extension',
    'DumpError',
    'SevenZipArchiver',
    'compress_artifact',
    'CompressionError'
]
