"""Logging setup for ptree."""

import logging
import sys

LOGGER_NAME = "ptree"
LOG_FORMAT = "ptree: %(levelname)s: %(message)s"


def configure_logging(level: int = logging.WARNING) -> logging.Logger:
    """
    Send ptree log records to the current stderr.

    Safe to call more than once: the console handler installed by an
    earlier call is replaced, so records follow sys.stderr if it has been
    swapped since.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        if getattr(handler, "_ptree_console", False):
            logger.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    console._ptree_console = True  # type: ignore[attr-defined]
    logger.addHandler(console)

    return logger
