"""Configuration system for rsync-backup-ng.

This module provides TOML-based configuration loading, validation,
and schema definitions for unattended backup runs.
"""

from .loader import ConfigError, find_config_file, load_config, load_effective_config
from .schema import Config, GlobalConfig, HomesConfig, SourceConfig

__all__ = [
    "GlobalConfig",
    "HomesConfig",
    "SourceConfig",
    "Config",
    "load_config",
    "load_effective_config",
    "find_config_file",
    "ConfigError",
]
