"""Logging for the ``finlytics`` package.

Library modules call :func:`get_logger`; scripts call :func:`configure_logging`
once to send the package's records to a stream.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional, Union

from .config import get_log_level

PACKAGE = "finlytics"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False


def _resolve_level(level: Union[int, str, None]) -> int:
    """``level`` if usable, then ``FINLYTICS_LOG_LEVEL``, then INFO."""
    if isinstance(level, int):
        return level
    for candidate in (level, get_log_level()):
        name = (candidate or "").strip().upper()
        if name.isdigit():
            return int(name)
        value = logging.getLevelName(name) if name else None
        if isinstance(value, int):
            return value
    return logging.INFO


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one stream handler to the package logger; later calls do nothing."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))

    logger = logging.getLogger(PACKAGE)
    logger.handlers = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE)
    if not _CONFIGURED and not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
