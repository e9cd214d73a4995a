"""
Per-run context.

The run date, retention class and destination are computed once, when
the run starts, and reused by every later stage so that a run crossing
midnight still writes a consistent set of names.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pgbackup.settings import Settings
from .retention import classify, weekday_index
from .destination import resolve_destination

DATE_FORMAT = '%Y-%m-%d'


@dataclass(frozen=True)
class RunContext:
    """Derived state for a single backup run"""

    now: datetime
    run_date: str
    weekday: int
    retention_class: str
    keep_days: int
    destination: str


def create_run_context(settings: Settings, now: Optional[datetime] = None) -> RunContext:
    """
    Build the run context from settings and the current time.

    Args:
        settings: Loaded settings
        now: Run time (defaults to datetime.now())

    Returns:
        RunContext
    """
    if now is None:
        now = datetime.now()

    retention = classify(
        now,
        settings.day_of_week_to_keep,
        settings.days_to_keep,
        settings.weeks_to_keep
    )
    run_date = now.strftime(DATE_FORMAT)

    return RunContext(
        now=now,
        run_date=run_date,
        weekday=weekday_index(now),
        retention_class=retention.suffix,
        keep_days=retention.keep_days,
        destination=resolve_destination(settings.backup_dir, run_date, retention.suffix)
    )
