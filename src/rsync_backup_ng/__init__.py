"""rsync-backup-ng: rsync_backup_ng/__init__.py."""

from pathlib import Path


__version__ = "0.3.0"


def relative_to_root(path: Path) -> Path:
    """Strip the leading slash so an absolute path can be joined below another."""
    return Path(str(path).lstrip("/"))
