"""Mount-table query: parse /proc/mounts (Linux) or ``mount`` output."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import NamedTuple

from cryptdir.log import get_logger

logger = get_logger("mounts")

_PROC_MOUNTS = Path("/proc/mounts")

# macOS / BSD: "encfs@macfuse0 on /Users/x/foo (macfuse, nodev, nosuid, ...)"
_MOUNT_LINE = re.compile(r"^(?P<source>\S+) on (?P<target>.+?) \((?P<fstype>[^,)]+)")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


class MountEntry(NamedTuple):
    """One row of the mount table."""

    source: str
    target: str
    fstype: str


def _unescape(field: str) -> str:
    """Decode the octal escapes /proc/mounts uses for spaces, tabs, etc."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_proc_mounts(text: str) -> list[MountEntry]:
    entries: list[MountEntry] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) >= 3:
            entries.append(
                MountEntry(_unescape(parts[0]), _unescape(parts[1]), parts[2])
            )
    return entries


def parse_mount_output(text: str) -> list[MountEntry]:
    entries: list[MountEntry] = []
    for line in text.splitlines():
        m = _MOUNT_LINE.match(line)
        if m:
            entries.append(MountEntry(m["source"], m["target"], m["fstype"]))
    return entries


def read_mount_table() -> list[MountEntry]:
    """Return the current mount table, or an empty list if it can't be read."""
    if _PROC_MOUNTS.exists():
        try:
            return parse_proc_mounts(_PROC_MOUNTS.read_text(encoding="utf-8"))
        except OSError as e:
            logger.debug("Cannot read %s: %s", _PROC_MOUNTS, e)
            return []
    try:
        result = subprocess.run(["mount"], capture_output=True, text=True)
    except OSError as e:
        logger.debug("Cannot run mount: %s", e)
        return []
    return parse_mount_output(result.stdout)


def is_mounted(path: Path, fstype: str) -> bool:
    """True if *path* is a mount target of type *fstype*.

    Matches either the filesystem type (``fuse.encfs`` on Linux) or a source
    starting with the bare tool name (``encfs@macfuse0`` on macOS).
    """
    tool = fstype.rsplit(".", 1)[-1]
    target = str(path)
    for entry in read_mount_table():
        if entry.target != target:
            continue
        if entry.fstype == fstype or entry.source.startswith(tool):
            return True
    return False
