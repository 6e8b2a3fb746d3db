"""Mount state management for the backup volume."""

import logging
import os
import re
import time
from pathlib import Path
from typing import Callable

from .. import __util__
from ..__logger__ import logger
from ..exceptions import MountFailed, UnmountFailed

MOUNT_TABLE = Path("/proc/mounts")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def _unescape(field: str) -> str:
    # /proc/mounts encodes blanks and backslashes as \040, \011, \134, ...
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def read_mount_points(mount_table=MOUNT_TABLE) -> set[str]:
    """Return the set of mount points listed in the mount table."""
    mount_points = set()
    with open(mount_table, encoding="utf-8") as f:
        for line in f:
            fields = line.split()
            if len(fields) >= 2:
                mount_points.add(os.path.normpath(_unescape(fields[1])))
    return mount_points


class MountManager:
    """Query and change the mount state of the backup volume.

    The mount table is read on every query, never cached. The volume is only
    unmounted again when this manager mounted it.
    """

    def __init__(
        self,
        mount_point,
        runner: Callable[..., int] = __util__.exec_subprocess,
        mount_table=MOUNT_TABLE,
        settle_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.mount_point = Path(mount_point)
        self.runner = runner
        self.mount_table = Path(mount_table)
        self.settle_seconds = settle_seconds
        self.sleep = sleep

    def __repr__(self) -> str:
        return f"MountManager({self.mount_point})"

    def is_mounted(self) -> bool:
        """Check the live mount table for the backup volume."""
        logger.debug("Checking if %s is mounted", self.mount_point)
        target = os.path.normpath(str(self.mount_point))
        try:
            mounted = target in read_mount_points(self.mount_table)
        except OSError as e:
            logger.error("Unable to read mount table %s: %s", self.mount_table, e)
            return False
        logger.debug("Mounted? %s", mounted)
        return mounted

    def ensure_mounted(self) -> bool:
        """Mount the backup volume unless it already is.

        Returns:
            True if the volume was already mounted, False if it was mounted now

        Raises:
            MountFailed: If the volume is not mounted after trying
        """
        logger.info("Ensuring that %s exists", self.mount_point)
        try:
            self.mount_point.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MountFailed(f"Unable to create mount point {self.mount_point}: {e}")

        if self.is_mounted():
            logger.info("%s is already mounted", self.mount_point)
            return True

        logger.info("Mounting %s", self.mount_point)
        try:
            returncode = self.runner(["mount", str(self.mount_point)])
        except __util__.AbortError as e:
            raise MountFailed(f"Unable to mount the backup disk: {e}") from e

        if not self.is_mounted():
            raise MountFailed(
                f"Unable to mount the backup disk at {self.mount_point} "
                f"(mount exited with status {returncode})"
            )
        return False

    def flush(self) -> None:
        """Commit buffered writes to disk and let them settle."""
        logger.debug("Flushing filesystem buffers")
        try:
            self.runner(["sync"], level=logging.DEBUG)
        except __util__.AbortError:
            os.sync()
        if self.settle_seconds > 0:
            self.sleep(self.settle_seconds)

    def unmount(self) -> None:
        """Unmount the backup volume.

        Raises:
            UnmountFailed: If umount fails or cannot be executed
        """
        try:
            returncode = self.runner(["umount", str(self.mount_point)])
        except __util__.AbortError as e:
            raise UnmountFailed(f"Unable to unmount {self.mount_point}: {e}") from e
        if returncode != 0:
            raise UnmountFailed(
                f"Unable to unmount {self.mount_point} (umount exited with status {returncode})"
            )

    def release_if_owned(self, was_already_mounted: bool) -> bool:
        """Flush writes and unmount the volume if this run mounted it.

        Unmount failures are logged, not raised.

        Returns:
            False if an unmount was attempted and failed, True otherwise
        """
        # Buffers go out first so a failed umount followed by unplugging
        # the disk does not lose data
        self.flush()

        if was_already_mounted:
            logger.info(
                "%s was mounted before the backup started, leaving it mounted",
                self.mount_point,
            )
            return True

        if not self.is_mounted():
            logger.info("%s is no longer mounted", self.mount_point)
            return True

        logger.info("Unmounting %s", self.mount_point)
        try:
            self.unmount()
        except UnmountFailed as e:
            logger.error("%s", e)
            return False
        self.flush()
        return True
