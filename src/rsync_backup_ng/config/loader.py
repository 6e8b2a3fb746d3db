"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from .schema import Config, GlobalConfig, HomesConfig, SourceConfig


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "rsync-backup-ng" / "config.toml",
    Path("/etc/rsync-backup-ng/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _parse_source(data: dict[str, Any]) -> SourceConfig:
    """Parse source configuration from dict."""
    if "path" not in data:
        raise ConfigError("Source missing required 'path' field")

    return SourceConfig(
        path=data["path"],
        unavailable_marker=data.get("unavailable_marker"),
        enabled=data.get("enabled", True),
    )


def _parse_homes(data: dict[str, Any]) -> HomesConfig:
    """Parse home directory configuration from dict."""
    defaults = HomesConfig()
    return HomesConfig(
        root=data.get("root", defaults.root),
        unavailable_marker=data.get("unavailable_marker", defaults.unavailable_marker),
        enabled=data.get("enabled", defaults.enabled),
    )


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    defaults = GlobalConfig()
    try:
        settle_seconds = float(data.get("settle_seconds", defaults.settle_seconds))
    except (TypeError, ValueError):
        raise ConfigError(
            f"Invalid settle_seconds: {data.get('settle_seconds')!r}"
        ) from None

    return GlobalConfig(
        mount_point=data.get("mount_point", defaults.mount_point),
        log_file=data.get("log_file", defaults.log_file),
        skip_file=data.get("skip_file", defaults.skip_file),
        lock_file=data.get("lock_file", defaults.lock_file),
        exclude_file=data.get("exclude_file", defaults.exclude_file),
        rsync=data.get("rsync", defaults.rsync),
        settle_seconds=settle_seconds,
        snapshot_format=data.get("snapshot_format", defaults.snapshot_format),
        destination_name=data.get("destination_name"),
        fail_on_source_error=data.get(
            "fail_on_source_error", defaults.fail_on_source_error
        ),
    )


def _is_within(path: Path, parent: Path) -> bool:
    return path == parent or parent in path.parents


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if not config.get_enabled_sources() and not config.homes.enabled:
        warnings.append("No sources configured")

    for source in config.sources:
        if not source.path.startswith("/"):
            warnings.append(f"Source '{source.path}' is not an absolute path")

    # Check for duplicate sources
    source_paths = [s.path.rstrip("/") or "/" for s in config.sources]
    if len(source_paths) != len(set(source_paths)):
        warnings.append("Duplicate source paths detected")

    # The backup volume must never be backed up into itself
    mount_point = Path(config.global_config.mount_point)
    for source in config.get_enabled_sources():
        if _is_within(mount_point, Path(source.path)):
            warnings.append(
                f"Mount point '{mount_point}' lies inside source '{source.path}'"
            )

    if config.global_config.settle_seconds < 0:
        warnings.append("settle_seconds is negative, no pause will be made")

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    global_config = _parse_global(data.get("global", {}))
    homes = _parse_homes(data.get("homes", {}))

    config = Config(global_config=global_config, homes=homes)
    if "sources" in data:
        config.sources = [_parse_source(s) for s in data["sources"]]

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def load_effective_config(explicit_path: str | None = None) -> tuple[Config, list[str], Path | None]:
    """Load the config file if there is one, otherwise fall back to defaults.

    Returns:
        Tuple of (Config object, list of warnings, path loaded or None)
    """
    config_path = find_config_file(explicit_path)
    if config_path is None:
        config = Config()
        return config, _validate_config(config), None
    config, warnings = load_config(config_path)
    return config, warnings, config_path


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# rsync-backup-ng configuration
# See documentation for full options

[global]
# The backup volume needs an fstab entry for this mount point, e.g.
#   UUID=2e36cace-6a61-4af6-96ef-6e91a0fc4df8 /mnt/backup ext4 user,noauto,rw
mount_point = "/mnt/backup"
log_file = "/var/tmp/backup.log"

# Create this file to pause backups
skip_file = "/etc/nobackup"
lock_file = "/tmp/backup.lck"

# rsync exclusion patterns, one per line (created empty if missing)
exclude_file = "/etc/rsync.backup.exclude"

rsync = "rsync"
settle_seconds = 2
snapshot_format = "%Y%m%d"
# destination_name = "myhost_Ubuntu_24.04"
fail_on_source_error = false

# Back up every home directory that is not encrypted/locked
[homes]
root = "/home"
unavailable_marker = "Access-Your-Private-Data.desktop"
enabled = true

[[sources]]
path = "/boot"

[[sources]]
path = "/etc"

[[sources]]
path = "/root"

# [[sources]]
# path = "/srv/data"
# unavailable_marker = ".not-mounted"
"""
