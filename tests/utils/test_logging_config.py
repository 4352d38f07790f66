"""Tests for logging setup."""

import logging

from rich.logging import RichHandler

from pystarter.config import LoggingConfig
from pystarter.utils import setup_logging


class TestSetupLogging:
    def teardown_method(self):
        logger = logging.getLogger("pystarter")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_defaults(self):
        logger = setup_logging()
        assert logger.name == "pystarter"
        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert [type(h) for h in logger.handlers] == [RichHandler]

    def test_verbose_means_info(self):
        assert setup_logging(verbose=True).level == logging.INFO

    def test_verbose_keeps_debug(self):
        assert setup_logging(LoggingConfig(level="DEBUG"), verbose=True).level == logging.DEBUG

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "pystarter.log"
        logger = setup_logging(LoggingConfig(level="INFO", file=str(log_file)))
        logging.getLogger("pystarter.scaffold").info("created %s", "main.py")
        for handler in logger.handlers:
            handler.flush()
        assert "created main.py" in log_file.read_text()
