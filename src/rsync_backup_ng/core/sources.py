"""Enumeration of the directories a run backs up."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..__logger__ import logger
from ..config import Config


@dataclass(frozen=True)
class SourceEntry:
    """A directory to back up, optionally guarded by an unavailability marker."""

    path: Path
    unavailable_marker: Optional[str] = None

    def is_available(self) -> bool:
        """False when the marker file exists inside the directory.

        Raises:
            OSError: If the directory cannot be searched for the marker
        """
        if not self.unavailable_marker:
            return True
        return not (self.path / self.unavailable_marker).exists()


def list_home_directories(root) -> list[Path]:
    """Return the subdirectories of ``root``, sorted by name."""
    root = Path(root)
    try:
        children = sorted(root.iterdir())
    except FileNotFoundError:
        logger.info("Home directory root %s does not exist", root)
        return []
    except OSError as e:
        logger.error("Unable to list home directories in %s: %s", root, e)
        return []
    return [child for child in children if child.is_dir() and not child.is_symlink()]


def enumerate_sources(config: Config) -> list[SourceEntry]:
    """Home directories first, then the configured fixed sources."""
    entries: list[SourceEntry] = []
    seen: set[Path] = set()

    def add(entry: SourceEntry) -> None:
        if entry.path in seen:
            logger.debug("Ignoring duplicate source %s", entry.path)
            return
        seen.add(entry.path)
        entries.append(entry)

    if config.homes.enabled:
        for home in list_home_directories(config.homes.root):
            add(SourceEntry(home, config.homes.unavailable_marker))

    for source in config.get_enabled_sources():
        add(SourceEntry(Path(source.path.rstrip("/") or "/"), source.unavailable_marker))

    return entries
