"""Configuration modules for plugbuild."""

from .archinfo import ArchSpec, get_arch_spec, is_web, matches, most_specific_match
from .build_config import BuildConfig, ConfigError, linker_cache_debug_from_env, setup_logging

__all__ = [
    "ArchSpec",
    "BuildConfig",
    "ConfigError",
    "get_arch_spec",
    "is_web",
    "linker_cache_debug_from_env",
    "matches",
    "most_specific_match",
    "setup_logging",
]
