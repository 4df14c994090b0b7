"""Logging setup for stylesplit commands.

Console output goes to stderr so ``stylesplit build --stdout`` can be piped
without log lines mixing into the bundle.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT_LOGGER = "stylesplit"
CONSOLE_FORMAT = "[stylesplit] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``stylesplit.<name>``, or the package logger when ``name`` is empty."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Attach a stderr handler and an optional file sink to the package logger.

    ``quiet`` keeps only warnings and errors on the console; ``verbose`` wins
    when both are given. The log file always records DEBUG and above.
    Calling this again replaces (and closes) the handlers of the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.propagate = False
    _close_handlers(logger)

    level = console_level(verbose=verbose, quiet=quiet)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_path, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(sink)
        level = logging.DEBUG

    logger.setLevel(level)
    return logger


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["configure_logging", "console_level", "get_logger"]
