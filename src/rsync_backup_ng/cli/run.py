"""Run command: Execute one backup run."""

import argparse
import logging
from datetime import datetime

from .. import relative_to_root
from ..__logger__ import create_logger
from ..config import Config
from ..core import EXIT_FATAL, build_controller, identity
from .common import get_log_level, load_config_from_args

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success or skipped, non-zero for failure)
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    config = load_config_from_args(args)
    if config is None:
        return EXIT_FATAL

    if getattr(args, "dry_run", False):
        return _dry_run(config)

    controller = build_controller(
        config,
        strict=getattr(args, "strict", False),
        log_to_file=not getattr(args, "no_log_file", False),
    )

    try:
        result = controller.run()
    except Exception as e:
        logger.error("Backup failed: %s", e)
        return EXIT_FATAL

    if result.error:
        logger.error("%s", result.error)
    elif result.partial:
        logger.warning(
            "Backup finished with %d failed source(s), see %s",
            len(result.failed_sources),
            config.global_config.log_file,
        )
    return result.exit_code


def _dry_run(config: Config) -> int:
    """Show what would be done without making changes."""
    settings = config.global_config
    controller = build_controller(config, log_to_file=False)
    snapshot_dir = identity.snapshot_dir(
        controller.destination_root, datetime.now(), settings.snapshot_format
    )

    print("Dry run mode - showing what would be done:")
    print("")
    print(f"Mount point:      {settings.mount_point}")
    print(f"Destination root: {controller.destination_root}")
    print(f"Snapshot dir:     {snapshot_dir}")
    print(f"Exclusion file:   {settings.exclude_file}")
    print(f"Log file:         {settings.log_file}")
    if controller.skip_file.exists():
        print(f"Skip marker {controller.skip_file} exists, the run would be skipped")
    print("")

    if not controller.sources:
        print("Sources: (none)")
        return 0

    print("Sources:")
    for entry in controller.sources:
        if not entry.path.exists():
            note = "missing, would be skipped"
        elif not entry.is_available():
            note = f"unavailable ({entry.unavailable_marker} present), would be skipped"
        else:
            note = f"would be synchronized to {controller.destination_root / relative_to_root(entry.path)}"
        print(f"  {entry.path}: {note}")

    return 0
