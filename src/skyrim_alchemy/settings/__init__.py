"""
Settings package for skyrim_alchemy.

Configuration is stored with Qt's QSettings, split into path, logging
and search subsystems.

Usage:
    from skyrim_alchemy.settings import AppSettings

    settings = AppSettings()
    result = settings.validate()
"""

from .core import AppSettings
from .logging import LoggingSettings
from .paths import PathSettings
from .search import SearchSettings
from .types import ConfigError, ConfigVersion, ValidationResult

__all__ = [
    "AppSettings",
    "ConfigError",
    "ConfigVersion",
    "LoggingSettings",
    "PathSettings",
    "SearchSettings",
    "ValidationResult",
]
