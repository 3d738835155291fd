"""Tests for cryptdir.log."""

from __future__ import annotations

import logging

from cryptdir.log import get_logger, setup_logging


class TestLogging:
    def test_get_logger_is_namespaced(self):
        assert get_logger("engine").name == "cryptdir.engine"

    def test_verbose_sets_debug(self):
        setup_logging(verbose=True)
        assert logging.getLogger("cryptdir").level == logging.DEBUG
        setup_logging(verbose=False)
        assert logging.getLogger("cryptdir").level == logging.WARNING

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("cryptdir").handlers) == 1
