#!/usr/bin/env python3
"""
Tests for logging configuration.
"""

import logging

import pytest

from jos_chat.logging import LOGGER_NAME, close_logging, configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    close_logging()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_level_by_name(self):
        logger = configure_logging("debug")
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("chatty")

    def test_reconfigure_replaces_handlers(self):
        logger = logging.getLogger(LOGGER_NAME)
        before = len(logger.handlers)
        configure_logging("INFO")
        configure_logging("INFO")
        assert len(logger.handlers) == before + 1

    def test_log_file_receives_records(self, tmp_path):
        log_file = tmp_path / "logs" / "jos.log"
        configure_logging(logging.INFO, log_file=log_file)
        logging.getLogger("jos_chat.session.store").info("Saved 3 sessions")
        close_logging()
        text = log_file.read_text()
        assert "[INFO] jos_chat.session.store: Saved 3 sessions" in text

    def test_close_removes_handlers(self):
        logger = logging.getLogger(LOGGER_NAME)
        before = len(logger.handlers)
        configure_logging()
        close_logging()
        assert len(logger.handlers) == before
