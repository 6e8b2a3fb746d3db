"""Tests for source enumeration."""

from pathlib import Path

from rsync_backup_ng.config import Config, HomesConfig, SourceConfig
from rsync_backup_ng.core.sources import SourceEntry, enumerate_sources, list_home_directories


def make_homes(root: Path, *names: str) -> None:
    root.mkdir(parents=True, exist_ok=True)
    for name in names:
        (root / name).mkdir()


class TestSourceEntry:
    """Tests for SourceEntry.is_available."""

    def test_no_marker_configured(self, tmp_path):
        """Test entries without a marker are always available."""
        assert SourceEntry(tmp_path).is_available() is True

    def test_marker_absent(self, tmp_path):
        """Test availability when the marker file does not exist."""
        assert SourceEntry(tmp_path, ".locked").is_available() is True

    def test_marker_present(self, tmp_path):
        """Test the marker file makes the entry unavailable."""
        (tmp_path / ".locked").touch()
        assert SourceEntry(tmp_path, ".locked").is_available() is False


class TestListHomeDirectories:
    """Tests for list_home_directories function."""

    def test_sorted_directories_only(self, tmp_path):
        """Test only directories are returned, in name order."""
        root = tmp_path / "home"
        make_homes(root, "zoe", "adam")
        (root / "README").write_text("not a home")

        assert list_home_directories(root) == [root / "adam", root / "zoe"]

    def test_missing_root(self, tmp_path):
        """Test a missing root yields no homes."""
        assert list_home_directories(tmp_path / "nope") == []

    def test_unreadable_root(self, tmp_path, monkeypatch):
        """Test an unreadable root yields no homes instead of raising."""
        root = tmp_path / "home"
        make_homes(root, "adam")

        def iterdir(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(Path, "iterdir", iterdir)

        assert list_home_directories(root) == []

    def test_symlinks_ignored(self, tmp_path):
        """Test symlinked directories are not treated as homes."""
        root = tmp_path / "home"
        make_homes(root, "adam")
        (root / "alias").symlink_to(root / "adam")
        assert list_home_directories(root) == [root / "adam"]


class TestEnumerateSources:
    """Tests for enumerate_sources function."""

    def test_homes_then_fixed_sources(self, tmp_path):
        """Test home directories come before the fixed list."""
        root = tmp_path / "home"
        make_homes(root, "bob", "alice")
        config = Config(
            homes=HomesConfig(root=str(root), unavailable_marker="Private.desktop"),
            sources=[SourceConfig("/etc"), SourceConfig("/boot")],
        )

        entries = enumerate_sources(config)

        assert [e.path for e in entries] == [
            root / "alice",
            root / "bob",
            Path("/etc"),
            Path("/boot"),
        ]
        assert entries[0].unavailable_marker == "Private.desktop"
        assert entries[2].unavailable_marker is None

    def test_disabled_entries_dropped(self, tmp_path):
        """Test disabled sources and disabled homes are left out."""
        root = tmp_path / "home"
        make_homes(root, "alice")
        config = Config(
            homes=HomesConfig(root=str(root), enabled=False),
            sources=[SourceConfig("/etc"), SourceConfig("/opt", enabled=False)],
        )

        assert [e.path for e in enumerate_sources(config)] == [Path("/etc")]

    def test_duplicates_removed(self, tmp_path):
        """Test a path listed twice is backed up once."""
        config = Config(
            homes=HomesConfig(root=str(tmp_path / "nohomes")),
            sources=[SourceConfig("/etc"), SourceConfig("/etc/")],
        )
        assert [e.path for e in enumerate_sources(config)] == [Path("/etc")]

    def test_source_marker_passed_through(self, tmp_path):
        """Test per-source unavailability markers survive enumeration."""
        config = Config(
            homes=HomesConfig(enabled=False),
            sources=[SourceConfig("/srv/data", unavailable_marker=".not-mounted")],
        )
        (entry,) = enumerate_sources(config)
        assert entry.unavailable_marker == ".not-mounted"
