"""Exceptions raised while driving a backup run.

Only ``MountFailed`` aborts a run. The others are either benign
(``SkipRequested``, ``AlreadyRunning``) or recorded while the run carries on.
"""


class BackupError(Exception):
    """Base exception for custom exceptions raised by rsync-backup-ng."""


class SkipRequested(BackupError):
    """Raised when the operator placed the skip marker to pause backups."""

    def __init__(self, marker) -> None:
        super().__init__(f"Backup didn't run because {marker} exists")
        self.marker = marker


class AlreadyRunning(BackupError):
    """Raised when a live process already holds the backup lock."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Another backup ({pid}) is still running")
        self.pid = pid


class MountFailed(BackupError):
    """Raised when the backup volume is still not mounted after mounting it."""


class UnmountFailed(BackupError):
    """Raised when the backup volume could not be unmounted."""


class SourceSyncFailed(BackupError):
    """Raised when synchronizing a single source directory fails."""

    def __init__(self, source, reason: str, returncode: int | None = None) -> None:
        super().__init__(f"Backing up {source} failed: {reason}")
        self.source = source
        self.reason = reason
        self.returncode = returncode
