"""EncFS: wrapper around the encfs CLI and the system unmount command."""

from __future__ import annotations

import shlex
import subprocess
import sys
from pathlib import Path

from cryptdir import mounts
from cryptdir.errors import MountFailed, ToolNotFound
from cryptdir.log import get_logger

logger = get_logger("encfs")


def default_unmount_command() -> list[str]:
    if sys.platform.startswith("linux"):
        return ["fusermount", "-u"]
    return ["umount"]


class EncFS:
    """Wrapper around the encfs CLI.

    Passphrases are never placed on the command line: without a password
    encfs prompts on the controlling terminal, with one it is fed through
    ``--stdinpass``.
    """

    MARKER = ".encfs6.xml"
    FSTYPE = "fuse.encfs"

    def __init__(self, command: str = "encfs", unmount_command: str | None = None) -> None:
        self.cmd = command
        if unmount_command:
            self.unmount_cmd = shlex.split(unmount_command)
        else:
            self.unmount_cmd = default_unmount_command()

    def has_volume(self, path: Path) -> bool:
        """True if *path* holds an encfs volume (its config marker is present)."""
        return (path / self.MARKER).is_file()

    def is_mounted(self, clear: Path) -> bool:
        return mounts.is_mounted(clear, self.FSTYPE)

    def unmount_hint(self, clear: Path) -> str:
        return shlex.join([*self.unmount_cmd, str(clear)])

    def _run(self, cmd: list[str], **kwargs) -> subprocess.CompletedProcess:
        logger.debug("Running: %s", shlex.join(cmd))
        try:
            return subprocess.run(cmd, **kwargs)
        except FileNotFoundError:
            raise ToolNotFound(
                f"{cmd[0]} not found.",
                remedy=f"Install {cmd[0]} (or set its path in cryptdir.toml).",
            ) from None

    # ------------------------------------------------------------------
    # Volume operations
    # ------------------------------------------------------------------

    def initialize(self, crypt: Path, clear: Path) -> None:
        """Create a new volume in *crypt*, mounted at *clear*.

        encfs asks for (and confirms) the new passphrase on the terminal.
        Raises MountFailed on failure.
        """
        result = self._run([self.cmd, "--standard", str(crypt), str(clear)])
        if result.returncode != 0:
            raise MountFailed(
                f"encfs could not create a volume in {crypt} "
                f"(exit status {result.returncode})."
            )

    def mount(
        self,
        crypt: Path,
        clear: Path,
        idle_minutes: int,
        password: str | None = None,
    ) -> None:
        """Mount the volume in *crypt* at *clear*. Raises MountFailed on failure.

        encfs unmounts by itself after *idle_minutes* without activity
        (0 disables the idle timeout).
        """
        cmd = [self.cmd]
        if idle_minutes:
            cmd.append(f"--idle={idle_minutes}")
        if password is None:
            result = self._run([*cmd, str(crypt), str(clear)])
        else:
            result = self._run(
                [*cmd, "--stdinpass", str(crypt), str(clear)],
                input=password + "\n",
                capture_output=True,
                text=True,
            )
        if result.returncode != 0:
            detail = (getattr(result, "stderr", None) or "").strip()
            msg = f"encfs could not mount {crypt} at {clear}"
            raise MountFailed(f"{msg}:\n{detail}" if detail else f"{msg}.")

    def unmount(self, clear: Path) -> bool:
        """Unmount *clear*. Returns False if the unmount failed (usually busy)."""
        result = self._run(
            [*self.unmount_cmd, str(clear)],
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            logger.debug("Unmount of %s failed: %s", clear, result.stderr.strip())
            return False
        return True
