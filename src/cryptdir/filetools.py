"""Bulk copy (rsync) and secure erase (shred) of plain-text originals."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from pathlib import Path

from cryptdir.errors import CopyFailed, ToolNotFound
from cryptdir.log import get_logger

logger = get_logger("filetools")


class Rsync:
    """Attribute-preserving, re-runnable directory copy."""

    def __init__(self, command: str = "rsync") -> None:
        self.cmd = command

    def copy(self, src: Path, dst: Path) -> None:
        """Copy the contents of *src* into *dst*. Raises CopyFailed on failure."""
        # Trailing slashes: copy contents, not the directory itself.
        cmd = [self.cmd, "-a", "--partial", f"{src}/", f"{dst}/"]
        logger.debug("Running: %s", shlex.join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise ToolNotFound(
                f"{self.cmd} not found.",
                remedy=f"Install {self.cmd} (or set its path in cryptdir.toml).",
            ) from None
        if result.returncode != 0:
            raise CopyFailed(
                f"Copying {src} into {dst} failed "
                f"(exit status {result.returncode}):\n{result.stderr.strip()}",
                remedy=f"Your originals are untouched in {src}; fix the problem and rerun.",
            )


class Shredder:
    """Best-effort secure erase of a directory tree."""

    def __init__(self, command: str = "shred", passes: int = 3) -> None:
        self.cmd = command
        self.passes = passes

    def wipe(self, path: Path) -> int:
        """Overwrite and unlink every regular file under *path*, then remove it.

        A file shred can't overwrite is still unlinked.  Returns the number
        of files that could not be overwritten.
        """
        failed = 0
        have_shred = True
        for root, _dirs, files in os.walk(path):
            for name in files:
                file_path = os.path.join(root, name)
                if have_shred and not os.path.islink(file_path):
                    try:
                        ok = self._shred(file_path)
                    except FileNotFoundError:
                        logger.warning(
                            "%s not found; removing originals without overwriting",
                            self.cmd,
                        )
                        have_shred = False
                        ok = False
                    if not ok:
                        failed += 1
                elif not os.path.islink(file_path):
                    failed += 1
                if os.path.lexists(file_path):
                    os.unlink(file_path)
        shutil.rmtree(path)
        return failed

    def _shred(self, file_path: str) -> bool:
        cmd = [self.cmd, "-f", "-n", str(self.passes), "-u", file_path]
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            logger.warning(
                "Could not overwrite %s: %s", file_path, result.stderr.strip()
            )
            return False
        return True
