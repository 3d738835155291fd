"""Transition engine: drive a classified directory to the requested state.

Every procedure is an ordered list of individually checked steps.  Nothing
is rolled back on failure; each intermediate layout is one the classifier
recognizes on the next run.  Plain-text originals are only removed after a
completed copy into the mounted volume.
"""

from __future__ import annotations

import os
import shutil
import sys
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from cryptdir.config import CryptdirConfig
from cryptdir.encfs import EncFS
from cryptdir.errors import (
    AlreadyDecrypted,
    AlreadyEncrypted,
    ConflictingState,
    InterruptedTransition,
    MountFailed,
    NothingToDecrypt,
    TargetNotFound,
    UnmountBusy,
)
from cryptdir.filetools import Rsync, Shredder
from cryptdir.log import get_logger
from cryptdir.paths import DirectoryPaths
from cryptdir.state import Classification, DirectoryState
from cryptdir.utils import confirm_prompt, make_empty_dir

logger = get_logger("engine")

# Upper bound for a single wait between unmount attempts.
_MAX_UNMOUNT_INTERVAL = 5.0


class Operation(Enum):
    encrypt = "encrypt"
    decrypt = "decrypt"


@dataclass
class TransitionOptions:
    fast: bool = False                 # skip secure wipe of originals
    password: str | None = None        # decrypt only; fed to encfs on stdin
    idle_minutes: int | None = None    # None: use the configured default


@dataclass
class Outcome:
    """Successful result of a transition."""

    message: str
    state: DirectoryState


def _step(message: str) -> None:
    print(message, file=sys.stderr)


class TransitionEngine:
    """Select and run the procedure for a (state, operation) pair."""

    def __init__(
        self,
        encfs: EncFS,
        copier: Rsync,
        shredder: Shredder,
        config: CryptdirConfig | None = None,
        *,
        confirm: Callable[[str], None] = confirm_prompt,
    ) -> None:
        self.encfs = encfs
        self.copier = copier
        self.shredder = shredder
        self.config = config or CryptdirConfig()
        self.confirm = confirm

    def transition(
        self,
        c: Classification,
        operation: Operation,
        options: TransitionOptions | None = None,
    ) -> Outcome:
        options = options or TransitionOptions()
        self._refuse(c, operation)
        if c.state is DirectoryState.plain:
            return self.encrypt_from_plain(c.paths, options)
        if c.state is DirectoryState.encrypted_unmounted:
            return self.mount_volume(c.paths, options)
        if c.state is DirectoryState.encrypted_mounted:
            return self.unmount_and_seal(c.paths)
        return self.resume_encrypt(c, options)

    def _refuse(self, c: Classification, operation: Operation) -> None:
        """Raise the error for every (state, operation) cell without a procedure."""
        p = c.paths
        state = c.state
        if state is DirectoryState.missing:
            raise TargetNotFound(
                f"{p.target} does not exist.",
                remedy=f"mkdir {p.target}",
            )
        if state is DirectoryState.conflicting:
            if c.wipe_exists and not c.temp_exists and not c.has_volume:
                raise ConflictingState(
                    f"{p.wipe} holds originals that were being erased, but "
                    f"there is no encrypted volume at {p.crypt}.",
                    remedy=f"Recover what you need from {p.wipe}, then remove it.",
                )
            raise ConflictingState(
                f"{p.clear} has content, but an encrypted copy also exists "
                f"({p.temp if c.temp_exists else p.crypt}). "
                "Refusing to guess which one is current.",
                remedy=(
                    f"Inspect both, move the stale one out of the way, "
                    f"then rerun: encrypt {p.target}"
                ),
            )
        if operation is Operation.encrypt:
            if state is DirectoryState.encrypted_unmounted:
                raise AlreadyEncrypted(
                    f"{p.target} is already encrypted.",
                    remedy=f"decrypt {p.target}",
                )
            return
        if state is DirectoryState.plain:
            raise NothingToDecrypt(
                f"{p.target} is not encrypted.",
                remedy=f"encrypt {p.target}",
            )
        if state is DirectoryState.encrypted_mounted:
            raise AlreadyDecrypted(
                f"{p.target} is already decrypted (mounted at {p.clear}).",
                remedy=f"encrypt {p.target}",
            )
        if state is DirectoryState.interrupted:
            parked = p.temp if c.temp_exists else p.wipe
            raise InterruptedTransition(
                f"An earlier encryption of {p.target} did not finish; "
                f"the originals are in {parked}.",
                remedy=f"encrypt {p.target}",
            )

    # ------------------------------------------------------------------
    # Procedures
    # ------------------------------------------------------------------

    def encrypt_from_plain(
        self, p: DirectoryPaths, options: TransitionOptions
    ) -> Outcome:
        if os.path.lexists(p.temp):
            raise ConflictingState(
                f"{p.temp} already exists.",
                remedy=f"Move {p.temp} out of the way, then rerun.",
            )
        self.confirm(
            f"Encrypt {p.target}? Its contents will be moved into a new "
            f"encrypted volume at {p.crypt}.\nType 'yes' to proceed: "
        )
        return self._encrypt(p, options)

    def resume_encrypt(
        self, c: Classification, options: TransitionOptions
    ) -> Outcome:
        p = c.paths
        if not c.temp_exists:
            # The volume was sealed before the kill; only erasure is left.
            self.confirm(
                f"An earlier encryption of {p.target} was sealed, but the "
                f"originals in {p.wipe} were not fully erased.\n"
                "Erase them now? Type 'yes' to proceed: "
            )
            if c.mounted:
                self._seal(p)
            self._dispose(p, options)
            return Outcome(f"Encrypted {p.target}.", DirectoryState.encrypted_unmounted)

        self.confirm(
            f"An earlier encryption of {p.target} did not finish; the "
            f"originals are in {p.temp}.\nFinish it now? Type 'yes' to proceed: "
        )
        if not c.has_volume:
            # Stopped before the volume existed: start over from the originals.
            _step(f"Restoring originals from {p.temp}")
            for d in (p.clear, p.crypt):
                if os.path.lexists(d):
                    make_empty_dir(d)
                    d.rmdir()
            p.temp.rename(p.target)
            return self._encrypt(p, options)

        if not c.mounted:
            make_empty_dir(p.clear)
            _step(f"Mounting {p.crypt} at {p.clear}")
            self.encfs.mount(p.crypt, p.clear, self._idle(options))
        return self._fill_and_seal(p, options)

    def mount_volume(
        self, p: DirectoryPaths, options: TransitionOptions
    ) -> Outcome:
        created = make_empty_dir(p.clear)
        try:
            self.encfs.mount(p.crypt, p.clear, self._idle(options), options.password)
        except MountFailed as e:
            if created:
                p.clear.rmdir()
            e.remedy = e.remedy or f"Check the password, then rerun: decrypt {p.target}"
            raise
        idle = self._idle(options)
        note = f"; unmounts after {idle} idle minute(s)" if idle else ""
        return Outcome(
            f"Decrypted {p.target} (mounted at {p.clear}{note}).",
            DirectoryState.encrypted_mounted,
        )

    def unmount_and_seal(self, p: DirectoryPaths) -> Outcome:
        self._seal(p)
        return Outcome(f"Encrypted {p.target}.", DirectoryState.encrypted_unmounted)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _encrypt(self, p: DirectoryPaths, options: TransitionOptions) -> Outcome:
        _step(f"Moving originals to {p.temp}")
        p.target.rename(p.temp)
        make_empty_dir(p.crypt)
        make_empty_dir(p.clear)

        _step(f"Creating encrypted volume in {p.crypt}")
        self.encfs.initialize(p.crypt, p.clear)
        return self._fill_and_seal(p, options)

    def _fill_and_seal(
        self, p: DirectoryPaths, options: TransitionOptions
    ) -> Outcome:
        _step(f"Copying originals into {p.clear}")
        self.copier.copy(p.temp, p.clear)
        self._seal(p)
        self._dispose(p, options)
        return Outcome(f"Encrypted {p.target}.", DirectoryState.encrypted_unmounted)

    def _dispose(self, p: DirectoryPaths, options: TransitionOptions) -> None:
        """Erase the originals once their copy is sealed in the volume.

        Temp is renamed to the wipe path before erasing starts.  Nothing is
        ever copied out of the wipe path.
        """
        if os.path.lexists(p.temp):
            if os.path.lexists(p.wipe):
                self._erase(p.wipe, options)
            p.temp.rename(p.wipe)
        self._erase(p.wipe, options)

    def _erase(self, path: Path, options: TransitionOptions) -> None:
        if options.fast:
            _step(f"Removing {path}")
            shutil.rmtree(path)
        else:
            _step(f"Securely erasing {path}")
            failed = self.shredder.wipe(path)
            if failed:
                logger.warning("%d file(s) were removed without being overwritten", failed)

    def _seal(self, p: DirectoryPaths) -> None:
        """Flush, unmount (with bounded retry) and reclaim the mount point."""
        os.sync()
        _step(f"Unmounting {p.clear}")
        self._unmount(p.clear)
        if not p.keep_mount_point:
            # Raises ConflictingState if anything sits under the bare mount point.
            make_empty_dir(p.clear)
            p.clear.rmdir()

    def _unmount(self, clear: Path) -> None:
        timeout = self.config.mount_unmount_timeout
        delay = self.config.mount_unmount_interval
        deadline = time.monotonic() + timeout
        attempt = 1
        while not self.encfs.unmount(clear):
            if time.monotonic() >= deadline:
                raise UnmountBusy(
                    f"{clear} is still busy after {timeout:g}s.",
                    remedy=(
                        "Close whatever is using it, then run: "
                        f"{self.encfs.unmount_hint(clear)}"
                    ),
                )
            logger.debug("Unmount attempt %d failed; retrying in %.1fs", attempt, delay)
            time.sleep(delay)
            delay = min(delay * 2, _MAX_UNMOUNT_INTERVAL)
            attempt += 1

    def _idle(self, options: TransitionOptions) -> int:
        if options.idle_minutes is not None:
            return options.idle_minutes
        return self.config.mount_idle_minutes
