"""Single-instance locking for backup runs.

The lock is a small text file holding the pid of the run that owns it. A
record naming a process that is no longer alive is stale and gets taken
over. Liveness is only checked by pid, so an unrelated process that happens
to reuse the pid keeps the lock alive until it exits.
"""

import os
from pathlib import Path
from typing import Callable, Optional

from filelock import FileLock

from ..__logger__ import logger
from ..exceptions import AlreadyRunning


def pid_alive(pid: int) -> bool:
    """Return True if a process with the given pid currently exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, but belongs to another user
        return True
    return True


class LockManager:
    """Enforce at most one concurrent backup run.

    Acquisition is serialized through a sibling ``<lock>.guard`` file held
    with ``filelock``. The guard file stays in place after release and does
    not mean a run is active; only the pid record does.
    """

    def __init__(
        self,
        lock_path,
        is_process_alive: Callable[[int], bool] = pid_alive,
        pid: Optional[int] = None,
    ) -> None:
        self.lock_path = Path(lock_path)
        self.is_process_alive = is_process_alive
        self.pid = os.getpid() if pid is None else pid
        # Serializes the read-check-write of concurrent invocations
        self._guard = FileLock(str(self.lock_path.with_name(self.lock_path.name + ".guard")))

    def __repr__(self) -> str:
        return f"LockManager({self.lock_path})"

    def read_owner(self) -> Optional[int]:
        """Return the pid recorded in the lock file, or None if absent or unreadable."""
        try:
            text = self.lock_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Unable to read lock file %s: %s", self.lock_path, e)
            return None
        if not text:
            return None
        try:
            return int(text.split()[0])
        except ValueError:
            return None

    def acquire(self) -> None:
        """Take the lock for this process.

        Raises:
            AlreadyRunning: If a live process other than this one owns the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        with self._guard:
            if self.lock_path.exists():
                owner = self.read_owner()
                if owner is None:
                    logger.warning(
                        "Lock file %s names no process, taking it over", self.lock_path
                    )
                elif owner != self.pid and self.is_process_alive(owner):
                    raise AlreadyRunning(owner)
                else:
                    logger.warning(
                        "Process %d holding %s is gone, taking over the stale lock",
                        owner,
                        self.lock_path,
                    )
            self._write_record()
        logger.debug("Acquired lock %s for process %d", self.lock_path, self.pid)

    def release(self) -> None:
        """Remove the lock record."""
        self.lock_path.unlink(missing_ok=True)
        logger.debug("Released lock %s", self.lock_path)

    def _write_record(self) -> None:
        tmp_path = self.lock_path.with_name(f"{self.lock_path.name}.{self.pid}.tmp")
        tmp_path.write_text(f"{self.pid}\n", encoding="utf-8")
        os.replace(tmp_path, self.lock_path)

    def __enter__(self) -> "LockManager":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()
