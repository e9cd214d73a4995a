"""
Exception hierarchy shared by the backup stages.

Each stage raises its own subclass; ``stage`` names the step that failed
so callers (the executor, the CLI exit code) can branch on it.
"""


class BackupError(Exception):
    """Base class for fatal backup run errors."""

    stage = 'unexpected'

    def __init__(self, message: str, output: str = '', stage: str = None):
        super().__init__(message)
        self.output = output
        if stage is not None:
            self.stage = stage
