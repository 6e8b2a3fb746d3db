"""Status command: Show lock, mount and snapshot state."""

import argparse
import logging

from ..__logger__ import create_logger
from ..core import build_controller
from .common import get_log_level, load_config_from_args

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    config = load_config_from_args(args)
    if config is None:
        return 1

    controller = build_controller(config, log_to_file=False)
    lock = controller.lock
    mount = controller.mount

    print("rsync-backup-ng Status")
    print("=" * 60)

    if controller.skip_file.exists():
        print(f"Backups:    paused ({controller.skip_file} exists)")
    else:
        print("Backups:    enabled")

    owner = lock.read_owner()
    if not lock.lock_path.exists():
        print("Lock:       free")
    elif owner is None:
        print(f"Lock:       stale ({lock.lock_path} names no process)")
    elif lock.is_process_alive(owner):
        print(f"Lock:       held by running process {owner}")
    else:
        print(f"Lock:       stale (process {owner} is gone)")

    mounted = mount.is_mounted()
    print(f"Volume:     {mount.mount_point} {'mounted' if mounted else 'not mounted'}")
    print(f"Sources:    {len(controller.sources)}")
    print(f"Log file:   {config.global_config.log_file}")
    print("")

    if not mounted:
        return 0

    backups = controller.destination_root / "backups"
    print(f"Destination: {controller.destination_root}")
    if not backups.is_dir():
        print("Snapshots:   (none)")
        return 0

    snapshots = sorted(p.name for p in backups.iterdir() if p.is_dir())
    print(f"Snapshots:   {len(snapshots)}")
    for name in snapshots[-10:]:
        print(f"  {name}")

    return 0
