"""Snapshot-aware mirroring of one source directory with rsync.

The destination keeps a mirror of each source at its path relative to ``/``.
Whatever rsync overwrites or deletes in the mirror is first moved into the
day's snapshot directory, at the same relative path.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from .. import __util__
from ..__logger__ import logger
from ..exceptions import SourceSyncFailed

RSYNC_OPTIONS = [
    "--verbose",
    "--backup",
    "--relative",
    "--archive",
    "--hard-links",
    "--sparse",
    "--numeric-ids",
    "--delete",
    "--delete-excluded",
    "--delete-after",
]

# "Partial transfer due to vanished source files"
RSYNC_VANISHED = 24


class SourceStatus(Enum):
    """Outcome of backing up one source directory."""

    SYNCED = "synced"
    MISSING = "missing"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass
class SourceResult:
    """Per-source record kept by a run."""

    path: Path
    status: SourceStatus
    detail: str = ""


class SnapshotSynchronizer:
    """Mirror source directories into the destination root."""

    def __init__(
        self,
        rsync: str = "rsync",
        runner: Callable[..., int] = __util__.exec_subprocess,
    ) -> None:
        self.rsync = rsync
        self.runner = runner

    def build_command(self, source, destination_root, snapshot_dir, exclude_file) -> list[str]:
        """Build the rsync command line for one source."""
        return [
            self.rsync,
            *RSYNC_OPTIONS,
            f"--backup-dir={snapshot_dir}",
            f"--exclude-from={exclude_file}",
            str(Path(source)),
            str(destination_root),
        ]

    def sync(self, source, destination_root, snapshot_dir, exclude_file) -> SourceStatus:
        """Mirror ``source`` below ``destination_root``.

        Returns:
            SourceStatus.SYNCED, or SourceStatus.MISSING if the source does not exist

        Raises:
            SourceSyncFailed: If the source is inaccessible, directories cannot be
                created or rsync fails
        """
        source = Path(source)
        try:
            exists = source.exists()
        except OSError as e:
            raise SourceSyncFailed(source, f"cannot access source: {e}") from e
        if not exists:
            logger.info("Skipping %s because it does not exist", source)
            return SourceStatus.MISSING

        for directory in (Path(destination_root), Path(snapshot_dir)):
            logger.debug("Ensuring that %s exists", directory)
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SourceSyncFailed(source, f"cannot create {directory}: {e}") from e

        logger.info("Backing up %s", source)
        command = self.build_command(source, destination_root, snapshot_dir, exclude_file)
        try:
            returncode = self.runner(command)
        except __util__.AbortError as e:
            raise SourceSyncFailed(source, str(e)) from e

        if returncode == RSYNC_VANISHED:
            logger.warning("Some files in %s vanished during the transfer", source)
        elif returncode != 0:
            raise SourceSyncFailed(
                source, f"rsync exited with status {returncode}", returncode
            )
        return SourceStatus.SYNCED
