"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from ..config import Config, ConfigError, load_effective_config

logger = logging.getLogger(__name__)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    return parser


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_config_from_args(args: argparse.Namespace) -> Config | None:
    """Load the configuration selected by ``--config``, or the defaults.

    Warnings are logged. Returns None after logging the error if the
    configuration cannot be loaded.
    """
    try:
        config, warnings, config_path = load_effective_config(
            getattr(args, "config", None)
        )
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    if config_path is None:
        logger.debug("No configuration file found, using defaults")
    else:
        logger.debug("Loaded configuration from: %s", config_path)

    for warning in warnings:
        logger.warning("Config: %s", warning)
    return config
