# pyright: standard

"""rsync-backup-ng: rsync_backup_ng/__logger__.py
A common logger rendered through rich, with per-run redirection to a log file.
"""

import logging
from pathlib import Path
from typing import IO, Optional

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console()
rich_handler = RichHandler(console=cons, show_path=False)
# Create a logger directly
logger = logging.Logger("rsync-backup-ng", logging.INFO)
logger.addHandler(rich_handler)


def create_logger(level="INFO") -> None:
    """Helper function to setup console logging at the given level."""
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console()
    rich_handler = RichHandler(console=cons, show_path=False)

    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)
    logger.addHandler(rich_handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=[rich_handler],
        force=True,
    )


class RunLog:
    """Redirect all log output of a backup run to a file.

    The file is opened in append mode so consecutive runs accumulate in the
    same place. The handlers in effect before entering are put back on exit,
    whichever way the run ends.
    """

    def __init__(self, path) -> None:
        self.path = Path(path)
        self._file: Optional[IO[str]] = None
        self._saved: list[tuple[logging.Logger, list[logging.Handler]]] = []

    def __enter__(self) -> "RunLog":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a", encoding="utf-8")
        file_console = Console(file=self._file, width=150, force_terminal=False)
        handler = RichHandler(
            console=file_console,
            show_path=False,
            rich_tracebacks=False,
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )

        root = logging.getLogger()
        self._saved = [(logger, list(logger.handlers)), (root, list(root.handlers))]
        for target in (logger, root):
            target.handlers.clear()
            target.addHandler(handler)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        for target, handlers in self._saved:
            target.handlers.clear()
            for handler in handlers:
                target.addHandler(handler)
        self._saved = []
        if self._file is not None:
            self._file.close()
            self._file = None
