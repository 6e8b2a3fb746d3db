"""Core backup run machinery.

This module contains the run controller and the lock, mount and
synchronization components it drives.
"""

from .controller import (
    EXIT_FATAL,
    EXIT_OK,
    EXIT_PARTIAL,
    RunController,
    RunOutcome,
    RunResult,
    RunState,
    build_controller,
)
from .lock import LockManager, pid_alive
from .mount import MountManager
from .sources import SourceEntry, enumerate_sources
from .sync import SnapshotSynchronizer, SourceResult, SourceStatus

__all__ = [
    "EXIT_FATAL",
    "EXIT_OK",
    "EXIT_PARTIAL",
    "LockManager",
    "MountManager",
    "RunController",
    "RunOutcome",
    "RunResult",
    "RunState",
    "SnapshotSynchronizer",
    "SourceEntry",
    "SourceResult",
    "SourceStatus",
    "build_controller",
    "enumerate_sources",
    "pid_alive",
]
