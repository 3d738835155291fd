"""Shared fixtures for cryptdir tests."""

from __future__ import annotations

import hashlib
import os
import shutil
from pathlib import Path
from types import SimpleNamespace

import pytest

from cryptdir.config import CryptdirConfig
from cryptdir.encfs import EncFS
from cryptdir.engine import TransitionEngine
from cryptdir.errors import MountFailed
from cryptdir.paths import hidden_naming


class FakeEncFS:
    """Simulates encfs volumes on disk without FUSE.

    A volume is a crypt directory holding the marker plus a ``data/``
    directory standing in for the ciphertext.  Mounting copies ``data/``
    into the clear directory; unmounting moves the clear content back.
    """

    MARKER = EncFS.MARKER

    def __init__(self, password: str = "secret") -> None:
        self.password = password
        self.mounted: dict[Path, Path] = {}
        self.busy = 0
        self.fail_mount = False
        self.calls: list[tuple] = []

    def has_volume(self, path: Path) -> bool:
        return (path / self.MARKER).is_file()

    def is_mounted(self, clear: Path) -> bool:
        return clear in self.mounted

    def unmount_hint(self, clear: Path) -> str:
        return f"fusermount -u {clear}"

    def initialize(self, crypt: Path, clear: Path) -> None:
        self.calls.append(("initialize", crypt, clear))
        (crypt / self.MARKER).write_text("<encfs/>")
        (crypt / "data").mkdir()
        self.mounted[clear] = crypt

    def mount(self, crypt, clear, idle_minutes, password=None) -> None:
        self.calls.append(("mount", crypt, clear, idle_minutes, password))
        if self.fail_mount or (password is not None and password != self.password):
            raise MountFailed(f"encfs could not mount {crypt} at {clear}.")
        shutil.copytree(crypt / "data", clear, dirs_exist_ok=True)
        self.mounted[clear] = crypt

    def unmount(self, clear: Path) -> bool:
        self.calls.append(("unmount", clear))
        if self.busy:
            self.busy -= 1
            return False
        crypt = self.mounted.pop(clear)
        data = crypt / "data"
        shutil.rmtree(data)
        shutil.copytree(clear, data)
        for entry in clear.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        return True


class FakeCopier:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []

    def copy(self, src: Path, dst: Path) -> None:
        self.calls.append((src, dst))
        shutil.copytree(src, dst, dirs_exist_ok=True, symlinks=True)


class FakeShredder:
    def __init__(self) -> None:
        self.wiped: list[Path] = []

    def wipe(self, path: Path) -> int:
        self.wiped.append(path)
        shutil.rmtree(path)
        return 0


def tree_digest(root: Path) -> dict[str, str]:
    """Map each file's path relative to *root* to its sha256."""
    out: dict[str, str] = {}
    for dirpath, _dirs, files in os.walk(root):
        for name in files:
            full = Path(dirpath) / name
            out[str(full.relative_to(root))] = hashlib.sha256(full.read_bytes()).hexdigest()
    return out


@pytest.fixture
def fake_encfs():
    return FakeEncFS()


@pytest.fixture
def tools(fake_encfs):
    """Fake collaborators plus an engine wired to them (confirm always yes)."""
    copier = FakeCopier()
    shredder = FakeShredder()
    confirmations: list[str] = []
    engine = TransitionEngine(
        fake_encfs,
        copier,
        shredder,
        CryptdirConfig(mount_unmount_timeout=5.0, mount_unmount_interval=0.01),
        confirm=confirmations.append,
    )
    return SimpleNamespace(
        encfs=fake_encfs,
        copier=copier,
        shredder=shredder,
        engine=engine,
        confirmations=confirmations,
    )


@pytest.fixture
def plain_dir(tmp_path):
    """A plain directory with a small nested tree; returns its DirectoryPaths."""
    target = tmp_path / "foo"
    (target / "sub").mkdir(parents=True)
    (target / "notes.txt").write_text("hello\n")
    (target / "sub" / "data.bin").write_bytes(bytes(range(256)))
    (target / ".hidden").write_text("dotfile")
    return hidden_naming(target)
