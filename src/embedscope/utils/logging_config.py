"""
Logging helpers for embedscope.

All package loggers live under the ``embedscope`` namespace so callers can
tune them with a single ``logging.getLogger("embedscope")`` call.
"""

import contextlib
import io
import logging
import sys
from typing import Iterator, Optional

ROOT_LOGGER_NAME = "embedscope"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        ``logging.Logger`` instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stream handler to the package root logger.

    Safe to call repeatedly: the handler is installed once and only the
    level is updated on later calls.

    Args:
        level: Level name; defaults to the configured ``log_level``

    Returns:
        The package root logger
    """
    global _handler
    if level is None:
        from ..config import get_config

        level = get_config().log_level

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level.upper())
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(_handler)
    return root


@contextlib.contextmanager
def quiet_primitive_output(verbose: bool) -> Iterator[None]:
    """
    Swallow stdout/stderr written by a numerical backend unless verbose.

    Only Python-level writes are captured; the logging module is unaffected
    because package handlers hold their own stream reference.
    """
    if verbose:
        yield
        return
    sink = io.StringIO()
    with contextlib.redirect_stdout(sink), contextlib.redirect_stderr(sink):
        yield
