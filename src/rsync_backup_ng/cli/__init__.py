"""Command line interface for rsync-backup-ng."""

from .dispatcher import main

__all__ = ["main"]
