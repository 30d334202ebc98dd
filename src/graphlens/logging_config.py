"""Logging setup for graphlens.

Library modules only call ``logging.getLogger(__name__)``. Handlers are
installed here, once per CLI invocation. Records go to stderr so that
``--format json`` output on stdout stays machine-readable.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "graphlens"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def verbosity_from_flags(verbose: bool = False, quiet: bool = False) -> str:
    """Map CLI flags onto a verbosity name; ``quiet`` wins."""
    if quiet:
        return "quiet"
    if verbose:
        return "verbose"
    return "normal"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """Route log records through rich (and optionally a file).

    Args:
        verbose: DEBUG level, with source paths and traceback locals
        quiet: ERROR level only
        log_file: Also append plain-text records to this file

    Returns:
        The ``graphlens`` package logger, set to the chosen level
    """
    verbosity = verbosity_from_flags(verbose, quiet)
    level = LEVELS[verbosity]
    detailed = verbosity == "verbose"

    handlers: list[logging.Handler] = [_rich_handler(detailed)]
    if log_file:
        handlers.append(_file_handler(log_file))

    # force=True so repeated invocations in one process swap handlers
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    return logger


def _rich_handler(detailed: bool) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=detailed,
        show_path=detailed,
    )


def _file_handler(path: str) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler
