"""
Environment-driven build configuration.

Settings that affect the long-lived parts of the build core (the link
cache) are read from environment variables so that build daemons can be
tuned without code changes:

    PLUGBUILD_LINKER_CACHE_SIZE         Link cache budget in bytes
    PLUGBUILD_PRINT_LINKER_CACHE_DEBUG  Report link cache hits and misses
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

import psutil

CACHE_SIZE_ENV = "PLUGBUILD_LINKER_CACHE_SIZE"
CACHE_DEBUG_ENV = "PLUGBUILD_PRINT_LINKER_CACHE_DEBUG"

DEFAULT_LINKER_CACHE_SIZE = 100 * 1024 * 1024  # 100MB

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when a configuration value cannot be parsed."""
    pass


def linker_cache_debug_from_env(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether link cache hits and misses should be reported at INFO."""
    if environ is None:
        environ = os.environ
    return environ.get(CACHE_DEBUG_ENV, "").strip().lower() in _TRUTHY


def default_linker_cache_size() -> int:
    """
    Default link cache budget for this machine.

    Uses 100MB unless the machine has so little free memory that a quarter
    of it is smaller.

    Returns:
        Cache budget in bytes
    """
    available = psutil.virtual_memory().available
    return min(DEFAULT_LINKER_CACHE_SIZE, available // 4)


@dataclass
class BuildConfig:
    """Configuration for the compile and link core."""

    linker_cache_size: int = DEFAULT_LINKER_CACHE_SIZE
    linker_cache_debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            BuildConfig with values from the environment or machine defaults

        Raises:
            ConfigError: If the cache size is not a non-negative integer
        """
        if environ is None:
            environ = os.environ

        raw_size = environ.get(CACHE_SIZE_ENV)
        if raw_size:
            try:
                cache_size = int(raw_size)
            except ValueError:
                raise ConfigError(
                    f"{CACHE_SIZE_ENV} must be an integer byte count, got {raw_size!r}"
                )
            if cache_size < 0:
                raise ConfigError(f"{CACHE_SIZE_ENV} must not be negative, got {cache_size}")
        else:
            cache_size = default_linker_cache_size()

        return cls(linker_cache_size=cache_size, linker_cache_debug=linker_cache_debug_from_env(environ))


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Send plugbuild log records to stdout.

    Calling it again only changes the level.

    Args:
        verbose: Include DEBUG records (cache hits, per-resource detail)

    Returns:
        The package logger
    """
    logger = logging.getLogger("plugbuild")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if any(getattr(h, "stream", None) is sys.stdout for h in logger.handlers):
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)
    return logger
