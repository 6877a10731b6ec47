"""Utility modules for embedscope."""

from .logging_config import get_logger, setup_logging, quiet_primitive_output

__all__ = [
    "get_logger",
    "setup_logging",
    "quiet_primitive_output",
]
