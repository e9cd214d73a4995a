from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BackupHistory(Base):
    """Backup run history"""
    __tablename__ = 'backup_history'

    id = Column(Integer, primary_key=True)
    database = Column(String(255), nullable=False)
    retention_class = Column(String(20))
    status = Column(String(20), nullable=False)  # 'success', 'failed'
    failed_stage = Column(String(50))
    destination = Column(Text)
    artifact_path = Column(Text)
    archive_path = Column(Text)
    file_size_bytes = Column(Integer)
    pruned_count = Column(Integer, default=0, nullable=False)
    error_message = Column(Text)
    logs = Column(Text)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self):
        return f'<BackupHistory {self.id} database={self.database} status={self.status}>'
