"""Package-wide logging helpers.

A NullHandler is installed on the ``fsglob`` logger so that importing the
library never emits "no handler" warnings. Applications opt in to output with
:func:`configure_logging`.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

PACKAGE_LOGGER_NAME = "fsglob"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: IO[str] | None = None,
    fmt: str | None = None,
    propagate: bool = True,
) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling it again replaces the handler installed by a previous call
    instead of stacking another one.
    """
    logger = get_logger()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = propagate

    for handler in list(logger.handlers):
        if getattr(handler, "_fsglob_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler._fsglob_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
