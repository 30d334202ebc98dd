"""Tests for logging_config.py - handler installation and levels."""

import logging

import pytest
from rich.logging import RichHandler

from graphlens.logging_config import LEVELS, setup_logging, verbosity_from_flags


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)
    logging.getLogger("graphlens").setLevel(logging.NOTSET)


class TestVerbosity:
    @pytest.mark.parametrize(
        "verbose,quiet,expected",
        [
            (False, False, "normal"),
            (True, False, "verbose"),
            (False, True, "quiet"),
            (True, True, "quiet"),
        ],
    )
    def test_flags(self, verbose, quiet, expected):
        assert verbosity_from_flags(verbose, quiet) == expected

    def test_levels(self):
        assert LEVELS["verbose"] < LEVELS["normal"] < LEVELS["quiet"]


class TestSetupLogging:
    def test_default_level_is_warning(self):
        logger = setup_logging()
        assert logger.name == "graphlens"
        assert logger.level == logging.WARNING

    def test_quiet_and_verbose(self):
        assert setup_logging(quiet=True).level == logging.ERROR
        assert setup_logging(verbose=True).level == logging.DEBUG

    def test_rich_handler_installed_once(self):
        setup_logging()
        setup_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)

    def test_log_file(self, tmp_path):
        path = tmp_path / "graphlens.log"
        setup_logging(log_file=str(path))
        logging.getLogger("graphlens.layout").warning("layout took %d ms", 12)
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = path.read_text(encoding="utf-8")
        assert "WARNING" in text
        assert "graphlens.layout: layout took 12 ms" in text
