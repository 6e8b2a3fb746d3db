"""Config command: Configuration management."""

import argparse
import logging

from ..__logger__ import create_logger
from ..config import ConfigError, find_config_file, load_config
from ..config.loader import CONFIG_PATHS, generate_example_config
from .common import get_log_level

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(level=log_level)

    action = getattr(args, "config_action", None)

    if action == "validate":
        return _validate_config(args)
    elif action == "init":
        return _init_config(args)
    else:
        print("Usage: rsync-backup-ng config <validate|init>")
        return 1


def _validate_config(args: argparse.Namespace) -> int:
    """Validate configuration file."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found, built-in defaults are used.")
            print("Searched locations:")
            for path in CONFIG_PATHS:
                print(f"  {path}")
            return 0

        print(f"Validating: {config_path}")
        config, warnings = load_config(config_path)

        if warnings:
            print("")
            print("Warnings:")
            for warning in warnings:
                print(f"  - {warning}")

        print("")
        print("Configuration is valid.")
        print(f"  Mount point: {config.global_config.mount_point}")
        print(f"  Sources: {len(config.sources)}")
        print(f"  Enabled: {len(config.get_enabled_sources())}")
        homes = "enabled" if config.homes.enabled else "disabled"
        print(f"  Home directories: {homes} ({config.homes.root})")

        return 0

    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 1


def _init_config(args: argparse.Namespace) -> int:
    """Generate example configuration."""
    content = generate_example_config()

    output = getattr(args, "output", None)
    if output:
        try:
            with open(output, "w") as f:
                f.write(content)
            print(f"Example configuration written to: {output}")
        except OSError as e:
            print(f"Error writing file: {e}")
            return 1
    else:
        print(content)

    return 0
