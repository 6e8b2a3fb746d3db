# pyright: standard

"""rsync-backup-ng: rsync_backup_ng/__util__.py
Common utility code shared between modules.
"""

import logging
import subprocess

from .__logger__ import logger


class AbortError(Exception):
    """Exception where rsync-backup-ng should abort."""


def log_heading(caption) -> str:
    """Formatted heading for logging output sections."""
    return f"{'-' * 10} {caption} {'-' * 10}"


def exec_subprocess(command, level=logging.INFO, **kwargs) -> int:
    """Run a command, logging its combined output line by line.

    Args:
        command: Argument list of the command to execute
        level: Log level used for the command's output lines
        kwargs: Extra keyword arguments for ``subprocess.Popen``

    Returns:
        The command's exit code

    Raises:
        AbortError: If the command cannot be started at all
    """
    logger.debug("Executing: %s", command)
    try:
        process = subprocess.Popen(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            **kwargs,
        )
    except OSError as e:
        logger.error("Unable to execute %s: %s", command[0], e)
        raise AbortError(f"Unable to execute {command[0]}: {e}") from e

    assert process.stdout is not None
    with process.stdout:
        for line in process.stdout:
            line = line.rstrip("\n")
            if line:
                logger.log(level, "%s", line)
    returncode = process.wait()
    logger.debug("%s exited with status %d", command[0], returncode)
    return returncode
