"""Path resolution and the naming rules that derive clear/crypt/temp paths.

Two on-disk layouts exist:

- **hidden** (default): the target directory is the mount point, the encfs
  store lives in a hidden sibling ``.NAME.crypt`` and originals are parked
  in ``.NAME.temp`` while they are copied in.  Once the volume is sealed
  the originals are renamed to ``.NAME.wipe`` and erased from there.
  Sealing removes the empty mount point.
- **suffix** (legacy): the encfs store occupies the target's own slot and
  clear content is exposed at the permanent sibling ``NAME.clear``.

Which layout applies is chosen by passing a naming rule to
:func:`resolve_paths`, never by global state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from cryptdir.errors import ConfigError, NotADirectory, PathNotFound


@dataclass(frozen=True)
class DirectoryPaths:
    """Resolved paths for one target directory."""

    target: Path
    clear: Path               # where decrypted content is exposed (mount point)
    crypt: Path               # encfs backing store
    temp: Path                # originals parked during the first encryption
    wipe: Path                # sealed-away originals awaiting erasure
    layout: str
    keep_mount_point: bool    # clear survives sealing (legacy sibling)


NamingRule = Callable[[Path], DirectoryPaths]


def hidden_naming(target: Path) -> DirectoryPaths:
    """``foo`` → clear ``foo``, crypt ``.foo.crypt``, temp ``.foo.temp``.

    The whole name is kept, so ``foo`` and ``.foo`` never share siblings.
    """
    name = target.name
    return DirectoryPaths(
        target=target,
        clear=target,
        crypt=target.with_name(f".{name}.crypt"),
        temp=target.with_name(f".{name}.temp"),
        wipe=target.with_name(f".{name}.wipe"),
        layout="hidden",
        keep_mount_point=False,
    )


def suffix_naming(target: Path) -> DirectoryPaths:
    """``foo`` → crypt ``foo``, clear ``foo.clear``, temp ``foo.temp``."""
    return DirectoryPaths(
        target=target,
        clear=target.with_name(f"{target.name}.clear"),
        crypt=target,
        temp=target.with_name(f"{target.name}.temp"),
        wipe=target.with_name(f"{target.name}.wipe"),
        layout="suffix",
        keep_mount_point=True,
    )


NAMING_RULES: dict[str, NamingRule] = {
    "hidden": hidden_naming,
    "suffix": suffix_naming,
}


def naming_rule(name: str) -> NamingRule:
    """Look up a naming rule by layout name."""
    try:
        return NAMING_RULES[name]
    except KeyError:
        choices = ", ".join(sorted(NAMING_RULES))
        raise ConfigError(
            f"Unknown layout scheme {name!r} (expected one of: {choices})"
        ) from None


def resolve_paths(raw: str, naming: NamingRule = hidden_naming) -> DirectoryPaths:
    """Turn a user-supplied path into absolute, link-resolved DirectoryPaths.

    The target itself may be missing (that is a classifiable state), but its
    parent must exist and an existing target must be a directory.  Nothing is created or modified.
    """
    if not raw:
        raise PathNotFound("No directory given.")
    # abspath also strips any trailing separator.
    target = Path(os.path.abspath(os.path.expanduser(raw)))
    if target == target.parent:
        raise PathNotFound(f"Refusing to operate on the filesystem root: {target}")
    parent = target.parent
    if not parent.is_dir():
        raise PathNotFound(f"Parent directory does not exist: {parent}")
    target = parent.resolve() / target.name
    if target.is_symlink():
        target = target.resolve()
        if not target.parent.is_dir():
            raise PathNotFound(f"Symlink points into a missing directory: {target}")
    if os.path.lexists(target) and not target.is_dir():
        raise NotADirectory(f"{target} exists but is not a directory.")
    return naming(target)
