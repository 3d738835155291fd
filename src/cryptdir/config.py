"""TOML config loading, defaults, and CLI override merging."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

# Python 3.11+ stdlib
import tomllib

from cryptdir.errors import ConfigError


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULTS = {
    "layout_scheme": "hidden",
    "mount_command": "encfs",
    "mount_idle_minutes": 60,
    "mount_unmount_command": "",
    "mount_unmount_timeout": 120.0,
    "mount_unmount_interval": 0.5,
    "copy_command": "rsync",
    "wipe_command": "shred",
    "wipe_passes": 3,
}


@dataclass
class CryptdirConfig:
    """Merged configuration (hardcoded defaults < cryptdir.toml < CLI)."""

    layout_scheme: str = _DEFAULTS["layout_scheme"]
    mount_command: str = _DEFAULTS["mount_command"]
    mount_idle_minutes: int = _DEFAULTS["mount_idle_minutes"]
    mount_unmount_command: str = _DEFAULTS["mount_unmount_command"]
    mount_unmount_timeout: float = _DEFAULTS["mount_unmount_timeout"]
    mount_unmount_interval: float = _DEFAULTS["mount_unmount_interval"]
    copy_command: str = _DEFAULTS["copy_command"]
    wipe_command: str = _DEFAULTS["wipe_command"]
    wipe_passes: int = _DEFAULTS["wipe_passes"]


def _flatten_toml(data: dict, prefix: str = "") -> dict[str, object]:
    """Flatten nested TOML dict into underscore-joined keys.

    ``{"mount": {"idle_minutes": 30}}`` → ``{"mount_idle_minutes": 30}``
    """
    out: dict[str, object] = {}
    for k, v in data.items():
        key = f"{prefix}_{k}" if prefix else k
        if isinstance(v, dict):
            out.update(_flatten_toml(v, key))
        else:
            out[key] = v
    return out


def _coerce(key: str, value: object) -> object:
    """Convert *value* to the type of the default for *key*."""
    kind = type(_DEFAULTS[key])
    if kind is not str and isinstance(value, bool):
        raise ConfigError(f"Invalid value for {key}: {value!r}")
    try:
        coerced = kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {key}: {value!r}") from None
    if kind in (int, float) and coerced < 0:
        raise ConfigError(f"Invalid value for {key}: {value!r} (must be >= 0)")
    return coerced


def config_file_path(config_home: Path | None = None) -> Path:
    """Return the path to cryptdir.toml under *config_home* (default: XDG)."""
    if config_home is None:
        val = os.environ.get("XDG_CONFIG_HOME", "")
        config_home = Path(val) if val else Path.home() / ".config"
    return config_home / "cryptdir.toml"


def load_config(path: Path) -> CryptdirConfig:
    """Read a single TOML file and return a CryptdirConfig with defaults filled in."""
    cfg = CryptdirConfig()
    if not path.exists():
        return cfg
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from None
    valid_keys = {fld.name for fld in fields(cfg)}
    for k, v in _flatten_toml(data).items():
        if k in valid_keys:
            setattr(cfg, k, _coerce(k, v))
    return cfg


def load_merged_config(
    path: Path,
    *,
    cli_overrides: dict[str, object] | None = None,
) -> CryptdirConfig:
    """Load the config file, then apply CLI overrides.

    Precedence: CLI flags > cryptdir.toml > hardcoded defaults.  Overrides
    whose value is None are skipped so unset flags don't clobber the file.
    """
    cfg = load_config(path)
    if cli_overrides:
        valid_keys = {fld.name for fld in fields(cfg)}
        for k, v in cli_overrides.items():
            if k in valid_keys and v is not None:
                setattr(cfg, k, _coerce(k, v))
    return cfg
