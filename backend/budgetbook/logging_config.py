"""Logging configuration for the ``budgetbook`` package.

``configure_logging`` attaches a single ``StreamHandler`` to the package
logger and is called once by the application factory. Other modules only do
``logger = logging.getLogger(__name__)`` and never attach handlers.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "budgetbook"
_CONFIGURED = False


def _parse_level(level: Union[int, str, None]) -> int:
    env_val = os.getenv("BUDGETBOOK_LOG_LEVEL")
    if env_val:
        level = env_val
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: Union[int, str, None] = None,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package logger exactly once.

    ``BUDGETBOOK_LOG_LEVEL`` in the environment wins over ``level``.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )

    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    # Avoid double emission via uvicorn's root handlers
    logger.propagate = False

    _CONFIGURED = True
