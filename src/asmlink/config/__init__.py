"""Configuration parsing modules for asmlink."""

from .build_config import BuildConfig, OverwritePolicy
from .ini_parser import (
    DEFAULT_CONFIG_NAME,
    AsmlinkConfig,
    AsmlinkConfigError,
    load_build_config,
)

__all__ = [
    "BuildConfig",
    "OverwritePolicy",
    "AsmlinkConfig",
    "AsmlinkConfigError",
    "DEFAULT_CONFIG_NAME",
    "load_build_config",
]
