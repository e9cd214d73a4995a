"""
Run history ledger.

Persists each BackupResult to a SQL database so that runs can be
inspected after the fact.
"""

from typing import List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pgbackup.models import Base, BackupHistory
from pgbackup.backup.executor import BackupResult


class HistoryRecorder:
    """Writes and reads backup history records."""

    def __init__(self, database_url: str):
        """
        Initialize history recorder, creating tables if needed.

        Args:
            database_url: SQLAlchemy database URL (e.g. sqlite:///history.db)
        """
        self.engine = create_engine(database_url)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    def record(self, result: BackupResult) -> BackupHistory:
        """
        Store a backup result.

        Args:
            result: Completed BackupResult

        Returns:
            Persisted BackupHistory record
        """
        history = BackupHistory(
            database=result.database,
            retention_class=result.retention_class,
            status=result.status,
            failed_stage=result.failed_stage,
            destination=result.destination,
            artifact_path=result.artifact_path,
            archive_path=result.archive_path,
            file_size_bytes=result.file_size_bytes,
            pruned_count=len(result.pruned),
            error_message=result.error_message,
            logs='\n'.join(result.logs),
            started_at=result.started_at,
            completed_at=result.completed_at
        )

        with self.Session() as session:
            session.add(history)
            session.commit()

        return history

    def recent(self, limit: int = 10) -> List[BackupHistory]:
        """Most recent runs first."""
        with self.Session() as session:
            return (
                session.query(BackupHistory)
                .order_by(BackupHistory.started_at.desc(), BackupHistory.id.desc())
                .limit(limit)
                .all()
            )

    def close(self):
        self.engine.dispose()
