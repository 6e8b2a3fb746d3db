"""Backup run lifecycle: lock, mount, synchronize every source, tear down.

A run moves through IDLE -> LOCK_HELD -> MOUNTED -> SYNCING -> TORN_DOWN.
A skip marker or a live lock ends it while still IDLE, with nothing to undo.
Once the lock is held, teardown (flush, unmount if this run mounted the
volume, restore logging, release the lock) happens exactly once on every
path, including exceptions.
"""

import contextlib
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, ContextManager, Optional

from .. import __util__
from ..__logger__ import RunLog, logger
from ..config import Config
from ..exceptions import AlreadyRunning, MountFailed, SkipRequested, SourceSyncFailed
from . import identity
from .lock import LockManager
from .mount import MountManager
from .sources import SourceEntry, enumerate_sources
from .sync import SnapshotSynchronizer, SourceResult, SourceStatus

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


class RunState(Enum):
    """Lifecycle state of a run."""

    IDLE = "idle"
    LOCK_HELD = "lock-held"
    MOUNTED = "mounted"
    SYNCING = "syncing"
    TORN_DOWN = "torn-down"


class RunOutcome(Enum):
    """How a run ended."""

    SKIPPED = "skipped"
    ALREADY_RUNNING = "already-running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass
class RunResult:
    """Record of one run."""

    started_at: datetime
    pid: int
    strict: bool = False
    state: RunState = RunState.IDLE
    outcome: Optional[RunOutcome] = None
    was_already_mounted: Optional[bool] = None
    sources: list[SourceResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed_sources(self) -> list[SourceResult]:
        return [s for s in self.sources if s.status is SourceStatus.FAILED]

    @property
    def partial(self) -> bool:
        """True if at least one source failed to back up."""
        return bool(self.failed_sources)

    @property
    def exit_code(self) -> int:
        if self.outcome is RunOutcome.FAILURE:
            return EXIT_FATAL
        if self.outcome is RunOutcome.PARTIAL and self.strict:
            return EXIT_PARTIAL
        return EXIT_OK


class RunController:
    """Drive a single backup run."""

    def __init__(
        self,
        *,
        lock: LockManager,
        mount: MountManager,
        synchronizer: SnapshotSynchronizer,
        sources: list[SourceEntry],
        destination_root,
        exclude_file,
        skip_file,
        snapshot_format: str = "%Y%m%d",
        run_log: Optional[ContextManager] = None,
        strict: bool = False,
        clock: Callable[[], datetime] = datetime.now,
        pid: Optional[int] = None,
    ) -> None:
        self.lock = lock
        self.mount = mount
        self.synchronizer = synchronizer
        self.sources = list(sources)
        self.destination_root = Path(destination_root)
        self.exclude_file = Path(exclude_file)
        self.skip_file = Path(skip_file)
        self.snapshot_format = snapshot_format
        self.run_log = run_log
        self.strict = strict
        self.clock = clock
        self.pid = os.getpid() if pid is None else pid

    def run(self) -> RunResult:
        """Execute the run and return its result. Never leaks the lock."""
        result = RunResult(started_at=self.clock(), pid=self.pid, strict=self.strict)

        try:
            self._check_skip()
        except SkipRequested as e:
            logger.info("%s", e)
            result.outcome = RunOutcome.SKIPPED
            return result

        try:
            self.lock.acquire()
        except AlreadyRunning as e:
            logger.info(
                "Backup didn't run because another backup (%d) is still running", e.pid
            )
            result.outcome = RunOutcome.ALREADY_RUNNING
            return result
        result.state = RunState.LOCK_HELD

        with contextlib.ExitStack() as teardown:
            teardown.callback(self.lock.release)
            if self.run_log is not None:
                teardown.enter_context(self.run_log)
            teardown.callback(self._finish, result)

            logger.info(__util__.log_heading(f"Backup started on {result.started_at.ctime()}"))

            try:
                result.was_already_mounted = self.mount.ensure_mounted()
            except MountFailed as e:
                logger.error("%s", e)
                teardown.callback(self.mount.flush)
                result.error = str(e)
                result.outcome = RunOutcome.FAILURE
                return result
            result.state = RunState.MOUNTED
            teardown.callback(self.mount.release_if_owned, result.was_already_mounted)

            self._ensure_exclude_file()

            snapshot_dir = identity.snapshot_dir(
                self.destination_root, result.started_at, self.snapshot_format
            )
            result.state = RunState.SYNCING
            for entry in self.sources:
                result.sources.append(self._sync_source(entry, snapshot_dir))

            result.outcome = RunOutcome.PARTIAL if result.partial else RunOutcome.SUCCESS

        return result

    def _check_skip(self) -> None:
        if self.skip_file.exists():
            raise SkipRequested(self.skip_file)

    def _sync_source(self, entry: SourceEntry, snapshot_dir: Path) -> SourceResult:
        try:
            available = entry.is_available()
        except OSError as e:
            logger.error("Unable to check whether %s is available: %s", entry.path, e)
            return SourceResult(entry.path, SourceStatus.FAILED, str(e))
        if not available:
            logger.info(
                "Skipping %s because %s exists (data unavailable)",
                entry.path,
                entry.unavailable_marker,
            )
            return SourceResult(entry.path, SourceStatus.UNAVAILABLE)

        try:
            status = self.synchronizer.sync(
                entry.path, self.destination_root, snapshot_dir, self.exclude_file
            )
        except SourceSyncFailed as e:
            logger.error("%s", e)
            if e.__cause__ is not None:
                logger.error("Cause: %r", e.__cause__)
            return SourceResult(entry.path, SourceStatus.FAILED, str(e))
        return SourceResult(entry.path, status)

    def _ensure_exclude_file(self) -> None:
        """The exclusion file tells rsync what to ignore. Create it if we need to."""
        if self.exclude_file.exists():
            return
        logger.info("Creating empty exclusion file %s", self.exclude_file)
        try:
            self.exclude_file.parent.mkdir(parents=True, exist_ok=True)
            self.exclude_file.touch()
        except OSError as e:
            logger.error("Unable to create %s: %s", self.exclude_file, e)

    def _finish(self, result: RunResult) -> None:
        if result.outcome is None:
            result.outcome = RunOutcome.FAILURE
            result.error = result.error or "Backup interrupted by an unexpected error"
        result.state = RunState.TORN_DOWN

        if result.failed_sources:
            logger.warning(
                "Completed with errors: %d of %d source(s) failed: %s",
                len(result.failed_sources),
                len(result.sources),
                ", ".join(str(s.path) for s in result.failed_sources),
            )
        logger.info(
            __util__.log_heading(f"Backup ended on {self.clock().ctime()} ({result.outcome.value})")
        )


def build_controller(config: Config, strict: bool = False, log_to_file: bool = True) -> RunController:
    """Assemble a RunController from configuration."""
    settings = config.global_config
    mount_point = Path(settings.mount_point)
    destination_root = mount_point / (settings.destination_name or identity.destination_name())

    return RunController(
        lock=LockManager(settings.lock_file),
        mount=MountManager(mount_point, settle_seconds=settings.settle_seconds),
        synchronizer=SnapshotSynchronizer(settings.rsync),
        sources=enumerate_sources(config),
        destination_root=destination_root,
        exclude_file=settings.exclude_file,
        skip_file=settings.skip_file,
        snapshot_format=settings.snapshot_format,
        run_log=RunLog(settings.log_file) if log_to_file else None,
        strict=strict or settings.fail_on_source_error,
    )
