"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest


class FakeRunner:
    """Stand-in for exec_subprocess that records commands.

    ``mount`` and ``umount`` edit the fake mount table the way the real
    commands would change /proc/mounts.
    """

    def __init__(self, mount_table: Path) -> None:
        self.mount_table = mount_table
        self.commands: list[list[str]] = []
        self.mount_ok = True
        self.umount_ok = True
        self.rsync_returncodes: dict[str, int] = {}

    def __call__(self, command, **kwargs) -> int:
        self.commands.append([str(c) for c in command])
        name = Path(str(command[0])).name
        if name == "mount":
            if not self.mount_ok:
                return 32
            with open(self.mount_table, "a") as f:
                f.write(f"/dev/sdb1 {command[1]} ext4 rw,relatime 0 0\n")
            return 0
        if name == "umount":
            if not self.umount_ok:
                return 1
            lines = self.mount_table.read_text().splitlines(keepends=True)
            self.mount_table.write_text(
                "".join(line for line in lines if line.split()[1] != str(command[1]))
            )
            return 0
        if name == "rsync":
            return self.rsync_returncodes.get(str(command[-2]), 0)
        return 0

    def named(self, name: str) -> list[list[str]]:
        """Commands whose executable is ``name``."""
        return [c for c in self.commands if Path(c[0]).name == name]


@pytest.fixture
def mount_table(tmp_path):
    """A mount table listing only the root filesystem."""
    path = tmp_path / "mounts"
    path.write_text("/dev/sda1 / ext4 rw,relatime 0 0\nproc /proc proc rw 0 0\n")
    return path


@pytest.fixture
def mount_point(tmp_path):
    """Mount point of the fake backup volume."""
    return tmp_path / "mnt" / "backup"


@pytest.fixture
def fake_runner(mount_table):
    """A FakeRunner bound to the fake mount table."""
    return FakeRunner(mount_table)


@pytest.fixture
def mark_mounted(mount_table, mount_point):
    """Return a callable that lists the backup volume as mounted."""

    def _mark():
        with open(mount_table, "a") as f:
            f.write(f"/dev/sdb1 {mount_point} ext4 rw 0 0\n")

    return _mark


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
mount_point = "/media/usb-backup"
log_file = "/var/log/rsync-backup-ng.log"
skip_file = "/etc/nobackup"
lock_file = "/run/rsync-backup-ng.lck"
exclude_file = "/etc/rsync.backup.exclude"
rsync = "/usr/bin/rsync"
settle_seconds = 5
destination_name = "laptop_Debian_12"
fail_on_source_error = true

[homes]
root = "/srv/home"
unavailable_marker = ".ecryptfs-locked"

[[sources]]
path = "/etc"

[[sources]]
path = "/srv/data"
unavailable_marker = ".not-mounted"

[[sources]]
path = "/opt"
enabled = false
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[[sources]]
path = "/etc"
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture
def sandbox_config_file(tmp_path, tmp_config_dir):
    """A config whose every path lies inside tmp_path."""
    (tmp_path / "home").mkdir()
    (tmp_path / "etc").mkdir()
    config_path = tmp_config_dir / "sandbox.toml"
    config_path.write_text(
        f"""
[global]
mount_point = "{tmp_path / 'mnt' / 'backup'}"
log_file = "{tmp_path / 'log' / 'backup.log'}"
skip_file = "{tmp_path / 'nobackup'}"
lock_file = "{tmp_path / 'run' / 'backup.lck'}"
exclude_file = "{tmp_path / 'rsync.backup.exclude'}"
settle_seconds = 0
destination_name = "testhost_Testix_1.0"

[homes]
root = "{tmp_path / 'home'}"

[[sources]]
path = "{tmp_path / 'etc'}"

[[sources]]
path = "{tmp_path / 'missing'}"
"""
    )
    return config_path
