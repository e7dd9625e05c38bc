"""Logging setup shared by the CLI and library modules."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT: str = "%H:%M:%S"


def setup_logger(name: str = "primitive_fit", level: int = logging.INFO) -> logging.Logger:
    """Configure a logger with a single stdout handler.

    Calling this twice for the same name only updates the level (no duplicate
    handlers).

    Args:
        name: Logger name (library modules log under `primitive_fit.*`).
        level: Logging level.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
