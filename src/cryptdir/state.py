"""Classify a target directory from its on-disk layout."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from cryptdir.errors import NotADirectory
from cryptdir.log import get_logger
from cryptdir.paths import DirectoryPaths, suffix_naming
from cryptdir.utils import is_empty

if TYPE_CHECKING:
    from cryptdir.encfs import EncFS

logger = get_logger("state")


class DirectoryState(Enum):
    """What the layout of a target directory says about it."""

    missing = "missing"
    plain = "plain"
    encrypted_unmounted = "encrypted_unmounted"
    encrypted_mounted = "encrypted_mounted"
    conflicting = "conflicting"
    interrupted = "interrupted"


@dataclass
class Classification:
    """A DirectoryState plus the facts it was derived from."""

    state: DirectoryState
    paths: DirectoryPaths
    target_exists: bool
    has_volume: bool
    mounted: bool
    clear_empty: bool
    temp_exists: bool
    wipe_exists: bool


def classify(paths: DirectoryPaths, encfs: EncFS) -> Classification:
    """Inspect *paths* on disk and return exactly one DirectoryState.

    Reads only: existence, emptiness, the volume marker and the mount table.
    An existing temp directory always means an encryption stopped part way,
    so every intermediate layout of that procedure is resumable.  A wipe
    directory means the copy was already sealed and only erasure is left.
    Raises NotADirectory when the target exists but is not a directory.
    """
    # A volume sitting directly in the target is the legacy suffix layout.
    if (
        paths.layout == "hidden"
        and encfs.has_volume(paths.target)
        and not os.path.lexists(paths.crypt)
    ):
        logger.debug("Legacy layout detected at %s", paths.target)
        paths = suffix_naming(paths.target)

    target_exists = os.path.lexists(paths.target)
    has_volume = encfs.has_volume(paths.crypt)
    temp_exists = os.path.lexists(paths.temp)
    wipe_exists = os.path.lexists(paths.wipe)
    if target_exists and not paths.target.is_dir():
        raise NotADirectory(f"{paths.target} exists but is not a directory.")
    mounted = encfs.is_mounted(paths.clear)
    clear_empty = True if mounted else is_empty(paths.clear)

    def result(state: DirectoryState) -> Classification:
        logger.debug(
            "%s: %s (exists=%s volume=%s mounted=%s clear_empty=%s temp=%s wipe=%s)",
            paths.target, state.value, target_exists, has_volume, mounted,
            clear_empty, temp_exists, wipe_exists,
        )
        return Classification(
            state=state,
            paths=paths,
            target_exists=target_exists,
            has_volume=has_volume,
            mounted=mounted,
            clear_empty=clear_empty,
            temp_exists=temp_exists,
            wipe_exists=wipe_exists,
        )

    if not (target_exists or has_volume or temp_exists or wipe_exists):
        return result(DirectoryState.missing)
    if temp_exists:
        if not mounted and not clear_empty:
            return result(DirectoryState.conflicting)
        return result(DirectoryState.interrupted)
    if wipe_exists:
        # Without a volume the wipe directory is the only copy left.
        if not has_volume or (not mounted and not clear_empty):
            return result(DirectoryState.conflicting)
        return result(DirectoryState.interrupted)
    if mounted:
        return result(DirectoryState.encrypted_mounted)
    if has_volume:
        if not clear_empty:
            return result(DirectoryState.conflicting)
        return result(DirectoryState.encrypted_unmounted)
    if not target_exists:
        return result(DirectoryState.missing)
    return result(DirectoryState.plain)


_DESCRIPTIONS = {
    DirectoryState.missing: "does not exist",
    DirectoryState.plain: "plain (not encrypted)",
    DirectoryState.encrypted_unmounted: "encrypted (not mounted)",
    DirectoryState.encrypted_mounted: "encrypted, mounted (clear content visible)",
    DirectoryState.conflicting: "conflicting (cannot tell which copy is current)",
    DirectoryState.interrupted: "interrupted encryption (resume with encrypt)",
}


def describe(c: Classification) -> str:
    """Human-readable status report for ``encrypt --status``."""
    p = c.paths
    lines = [
        f"{p.target}: {_DESCRIPTIONS[c.state]}",
        f"  layout:  {p.layout}",
        f"  clear:   {p.clear}{' (mounted)' if c.mounted else ''}",
        f"  crypt:   {p.crypt}{' (volume)' if c.has_volume else ''}",
    ]
    if c.temp_exists:
        lines.append(f"  temp:    {p.temp}")
    if c.wipe_exists:
        lines.append(f"  wipe:    {p.wipe} (originals not yet erased)")
    return "\n".join(lines)
