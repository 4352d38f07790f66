"""
Logging Setup.

Configures the ``pystarter`` logger hierarchy once per process: Rich
formatted output on stderr plus an optional log file.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from pystarter.config.models import LoggingConfig

PACKAGE_LOGGER = "pystarter"


def setup_logging(config: LoggingConfig | None = None, verbose: bool = False) -> logging.Logger:
    """Configure package logging.

    Args:
        config: Logging configuration (defaults when None)
        verbose: Force INFO level regardless of the configured level

    Returns:
        The package logger
    """
    config = config or LoggingConfig()
    level = logging.INFO if verbose else getattr(logging, config.level.value)
    if verbose and config.level.value == "DEBUG":
        level = logging.DEBUG

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if config.file:
        path = Path(config.file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    return logger
