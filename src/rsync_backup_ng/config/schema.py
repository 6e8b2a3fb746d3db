"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class SourceConfig:
    """A directory to back up.

    Attributes:
        path: Absolute path of the directory
        unavailable_marker: File name that, when present inside the
            directory, means its contents cannot be backed up right now
        enabled: Whether this source is backed up
    """

    path: str
    unavailable_marker: Optional[str] = None
    enabled: bool = True


@dataclass
class HomesConfig:
    """Per-user home directory enumeration.

    Attributes:
        root: Directory whose subdirectories are the home directories
        unavailable_marker: File that marks a home as encrypted/not mounted
        enabled: Whether home directories are backed up at all
    """

    root: str = "/home"
    unavailable_marker: Optional[str] = "Access-Your-Private-Data.desktop"
    enabled: bool = True


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        mount_point: Where the backup volume gets mounted (needs an fstab entry)
        log_file: File the output of every run is appended to
        skip_file: Backups are paused while this file exists
        lock_file: Record of the pid owning the running backup
        exclude_file: rsync exclusion patterns, one per line
        rsync: rsync executable
        settle_seconds: Pause after flushing writes around an unmount
        snapshot_format: strftime format naming the daily snapshot directory
        destination_name: Override for the <host>_<distro>_<version> name
        fail_on_source_error: Exit non-zero when any source failed
    """

    mount_point: str = "/mnt/backup"
    log_file: str = "/var/tmp/backup.log"
    skip_file: str = "/etc/nobackup"
    lock_file: str = "/tmp/backup.lck"
    exclude_file: str = "/etc/rsync.backup.exclude"
    rsync: str = "rsync"
    settle_seconds: float = 2.0
    snapshot_format: str = "%Y%m%d"
    destination_name: Optional[str] = None
    fail_on_source_error: bool = False


def _default_sources() -> list[SourceConfig]:
    return [SourceConfig("/boot"), SourceConfig("/etc"), SourceConfig("/root")]


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        global_config: Global settings
        homes: Home directory enumeration settings
        sources: Fixed list of directories to back up
    """

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    homes: HomesConfig = field(default_factory=HomesConfig)
    sources: list[SourceConfig] = field(default_factory=_default_sources)

    def get_enabled_sources(self) -> list[SourceConfig]:
        """Get list of enabled fixed sources."""
        return [s for s in self.sources if s.enabled]
