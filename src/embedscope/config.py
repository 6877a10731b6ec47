"""
Configuration management for embedscope.

Loads configuration from environment variables (typically from a .env file).
Uses python-dotenv to load .env automatically.

Usage:
    from embedscope.config import get_config, configure

    # Read the current defaults
    cfg = get_config()

    # Turn on diagnostic warnings for every component built afterwards
    configure(verbose=True)

Components take an explicit ``config=`` argument at construction time and
fall back to ``get_config()`` only when none is given; nothing reads the
global instance from inside fit/transform.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path


# Try to load .env file if it exists
try:
    from dotenv import load_dotenv

    # Look for .env in project root (parent of src/)
    env_path = Path(__file__).parent.parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
except ImportError:
    # python-dotenv not installed - will use system environment variables
    pass


_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() == "true"


@dataclass(frozen=True)
class Config:
    """
    Process-wide defaults for embedscope components.

    Attributes:
        verbose: Emit diagnostic warnings (parameter auto-adjustments) and let
            the numerical backends write progress output.
        log_level: Level used by ``setup_logging`` when none is given.
        range_warning_threshold: Value range (max - min over all entries)
            above which UMAP input triggers a numerical-instability warning.
        min_umap_samples: Minimum number of samples required to train UMAP.
    """

    verbose: bool = False
    log_level: str = "WARNING"
    range_warning_threshold: float = 1000.0
    min_umap_samples: int = 10

    def __post_init__(self):
        """Validate field values."""
        if self.log_level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"Unknown log level: {self.log_level}. "
                f"Expected one of {', '.join(_VALID_LOG_LEVELS)}"
            )
        if self.range_warning_threshold <= 0:
            raise ValueError("range_warning_threshold must be positive")
        if self.min_umap_samples < 2:
            raise ValueError("min_umap_samples must be at least 2")

    @classmethod
    def from_env(cls) -> "Config":
        """
        Build a Config from environment variables.

        Environment variables:
            EMBEDSCOPE_VERBOSE / DEBUG: "true" enables verbose output
            EMBEDSCOPE_LOG_LEVEL: logging level name (default WARNING)
        """
        return cls(
            verbose=_env_flag("EMBEDSCOPE_VERBOSE") or _env_flag("DEBUG"),
            log_level=os.getenv("EMBEDSCOPE_LOG_LEVEL", "WARNING").upper(),
        )


# Global config instance
config = Config.from_env()


def get_config() -> Config:
    """Return the current process-wide default configuration."""
    return config


def configure(**overrides) -> Config:
    """
    Replace the process-wide default configuration.

    Only affects components constructed after the call; existing instances
    keep the Config they were built with.

    Args:
        **overrides: Config field values to change (e.g. ``verbose=True``)

    Returns:
        The new default Config
    """
    global config
    config = replace(config, **overrides)
    return config
