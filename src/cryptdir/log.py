"""Logging setup: one stderr handler on the ``cryptdir`` logger."""

from __future__ import annotations

import logging
import sys

_ROOT = "cryptdir"


def setup_logging(verbose: bool = False) -> None:
    """Configure the ``cryptdir`` logger; DEBUG when *verbose*, else WARNING."""
    logger = logging.getLogger(_ROOT)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("cryptdir: %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the child logger ``cryptdir.<name>``."""
    return logging.getLogger(f"{_ROOT}.{name}")
