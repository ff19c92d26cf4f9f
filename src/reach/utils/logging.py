"""Package-wide logger helpers."""

from __future__ import annotations

import logging
from typing import Optional, Union

LOGGER_NAME = "reach"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handler: Optional[logging.Handler] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``reach`` logger, or a child of it when *name* is given."""

    if name is None or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger once and set *level*.

    Calling it again only changes the level.
    """

    global _handler
    logger = get_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
    logger.setLevel(level)
    return logger


__all__ = ["LOG_FORMAT", "LOGGER_NAME", "configure_logging", "get_logger"]
