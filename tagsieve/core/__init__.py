"""Core logic for tagsieve.

This module provides the core functionality:
- Filter: Rule compilation, matching and application
- FilterLoader: Rule file loading
- FilterRunner: Filter passes over a mail store
- ConfigLoader: Configuration file loading
- PluginManager: Plugin discovery and store backend selection
"""

from tagsieve.core.config import (
    Config,
    ConfigError,
    ConfigLoader,
    FilteringConfig,
    GeneralConfig,
    LoggingConfig,
    StoreConfig,
    resolve_database_path,
    resolve_filters_path,
)
from tagsieve.core.filter import Filter, compile_pattern
from tagsieve.core.fingerprint import fingerprint
from tagsieve.core.loader import FilterLoader, RuleFileError
from tagsieve.core.plugin import NoBackendError, PluginError, PluginManager
from tagsieve.core.runner import DryRunMatch, FilterRunner, FilterRunStats

__all__ = [
    "Config",
    "ConfigError",
    "ConfigLoader",
    "DryRunMatch",
    "Filter",
    "FilterLoader",
    "FilterRunStats",
    "FilterRunner",
    "FilteringConfig",
    "GeneralConfig",
    "LoggingConfig",
    "NoBackendError",
    "PluginError",
    "PluginManager",
    "RuleFileError",
    "StoreConfig",
    "compile_pattern",
    "fingerprint",
    "resolve_database_path",
    "resolve_filters_path",
]
