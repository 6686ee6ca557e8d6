"""
Configuration module for gcd.

Exports the main components for convenient imports.
"""

from .loader import load_config
from .schema import (
    AppConfig,
    IndexConfig,
    LoggingConfig,
    MatchConfig,
    default_config_dir,
)

__all__ = [
    "load_config",
    "AppConfig",
    "IndexConfig",
    "LoggingConfig",
    "MatchConfig",
    "default_config_dir",
]
