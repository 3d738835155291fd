"""Utility functions: confirm_prompt, is_empty, make_empty_dir."""

from __future__ import annotations

import os
from pathlib import Path

from cryptdir.errors import ConflictingState, UserAborted


def confirm_prompt(message: str) -> None:
    """Print *message*, read a line, raise UserAborted unless it is 'yes'."""
    print(message, end="", flush=True)
    try:
        response = input()
    except (EOFError, KeyboardInterrupt):
        print()
        raise UserAborted("Aborted.")
    if response.strip() != "yes":
        raise UserAborted("Aborted.")


def is_empty(path: Path) -> bool:
    """Return True if *path* is missing or a directory with no entries.

    Lists at most one entry; never modifies the directory.  A non-directory
    at *path* counts as content.
    """
    if not os.path.lexists(path):
        return True
    if not path.is_dir() or path.is_symlink():
        return False
    with os.scandir(path) as it:
        return next(it, None) is None


def make_empty_dir(path: Path) -> bool:
    """Ensure *path* is an empty directory.  Returns True if it was created.

    Raises ConflictingState when something non-empty is already there.
    """
    if not os.path.lexists(path):
        path.mkdir()
        return True
    if not is_empty(path):
        raise ConflictingState(
            f"{path} already exists and is not empty.",
            remedy=f"Move {path} out of the way, then rerun.",
        )
    return False
