"""Cryptdir error hierarchy."""

from __future__ import annotations


class CryptdirError(Exception):
    """Base exception for all cryptdir errors.

    *remedy* is the literal command (or short instruction) the user should
    run next, printed beneath the error message when present.
    """

    def __init__(self, message: str, remedy: str | None = None) -> None:
        super().__init__(message)
        self.remedy = remedy


class ConfigError(CryptdirError):
    """Configuration file missing or malformed."""


class PathNotFound(CryptdirError):
    """A parent component of the requested path does not exist."""


class TargetNotFound(CryptdirError):
    """The target directory does not exist and holds no volume."""


class NotADirectory(CryptdirError):
    """The target path exists but is not a directory."""


class AlreadyEncrypted(CryptdirError):
    """Encrypt requested on a sealed volume."""


class AlreadyDecrypted(CryptdirError):
    """Decrypt requested on a volume that is already mounted."""


class NothingToDecrypt(CryptdirError):
    """Decrypt requested on a plain directory."""


class ConflictingState(CryptdirError):
    """Clear content and an encrypted copy exist side by side."""


class InterruptedTransition(CryptdirError):
    """A previous encryption was interrupted and must be resumed first."""


class MountFailed(CryptdirError):
    """encfs could not create or mount the volume."""


class CopyFailed(CryptdirError):
    """Copying the originals into the volume failed."""


class UnmountBusy(CryptdirError):
    """The volume stayed busy past the unmount retry bound."""


class ToolNotFound(CryptdirError):
    """A required external program is not installed."""


class UserAborted(CryptdirError):
    """User declined an interactive confirmation."""
