"""Naming of the destination root and the daily snapshot directory."""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

LSB_RELEASE = Path("/etc/lsb-release")
OS_RELEASE = Path("/etc/os-release")

UNKNOWN = "unknown"


def parse_release_file(path) -> dict[str, str]:
    """Parse a KEY=VALUE release file, stripping quotes. Missing file gives {}."""
    values = {}
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip().strip("'\"")
    except OSError:
        return {}
    return values


def distribution(lsb_release=LSB_RELEASE, os_release=OS_RELEASE) -> tuple[str, str]:
    """Return (name, version) of the running distribution."""
    lsb = parse_release_file(lsb_release)
    if lsb.get("DISTRIB_ID"):
        return lsb["DISTRIB_ID"], lsb.get("DISTRIB_RELEASE") or UNKNOWN

    osr = parse_release_file(os_release)
    return osr.get("ID") or UNKNOWN, osr.get("VERSION_ID") or UNKNOWN


def _clean(part: str) -> str:
    return re.sub(r"[\s/]+", "-", part.strip()) or UNKNOWN


def destination_name(
    hostname: Optional[str] = None,
    lsb_release=LSB_RELEASE,
    os_release=OS_RELEASE,
) -> str:
    """<host>_<distribution name>_<distribution version>, e.g. foobar_Ubuntu_11.10."""
    if hostname is None:
        hostname = os.uname().nodename
    name, version = distribution(lsb_release, os_release)
    return "_".join(_clean(part) for part in (hostname, name, version))


def snapshot_dir(destination_root, started_at: datetime, fmt: str = "%Y%m%d") -> Path:
    """Directory collecting the previous versions of files changed on one day."""
    return Path(destination_root) / "backups" / started_at.strftime(fmt)
