"""
Logging for the storefront engine.

Everything logs under the ``storefront`` logger to stdout. The level comes
from ``STOREFRONT_LOG_LEVEL``, then ``LOG_LEVEL``, then INFO. Records stay
out of the root logger unless ``set_propagation(True)`` is called, which is
how the test suite lets pytest's ``caplog`` see them.
"""
import logging
import os
import sys
from typing import Optional, Union

ROOT_NAME = "storefront"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_from_env() -> str:
    level = (os.getenv("STOREFRONT_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    # Unknown names come back as "Level X" strings.
    return level if isinstance(logging.getLevelName(level), int) else "INFO"


logger = logging.getLogger(ROOT_NAME)
logger.setLevel(_level_from_env())

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(_handler)

logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """``storefront.<name>``, or the package logger itself when no name is given."""
    if name:
        return logger.getChild(name)
    return logger


def set_level(level: Union[int, str]) -> None:
    logger.setLevel(level.upper() if isinstance(level, str) else level)


def set_propagation(enabled: bool) -> None:
    """Let records reach the root logger's handlers as well."""
    logger.propagate = enabled
