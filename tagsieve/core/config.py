"""Configuration loading and parsing for tagsieve.

This module provides the ConfigLoader class for reading TOML configuration
files, the Config dataclass for storing configuration values, and helpers
resolving the notmuch database and rule file locations.
"""

import configparser
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomli

from tagsieve.errors import TagsieveError

RULES_FILENAME = "tagsieve-rules.json"

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class ConfigError(TagsieveError):
    """Exception raised for configuration parsing errors.

    Attributes:
        message: Error description
        line: Line number where error occurred (if available)
        path: Path to the config file (if available)
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        path: Optional[Path] = None
    ):
        self.line = line
        self.path = path

        # Build error message with line number if available
        parts = []
        if path:
            parts.append(f"Error in {path}")
        if line is not None:
            parts.append(f"at line {line}")
        if parts:
            full_message = f"{' '.join(parts)}: {message}"
        else:
            full_message = message

        super().__init__(full_message)


@dataclass
class GeneralConfig:
    """Locations of the notmuch config, the database and the rule file."""

    notmuch_config: Optional[str] = None
    database: Optional[str] = None
    filters: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "GeneralConfig":
        """Create GeneralConfig from a dictionary."""
        return cls(
            notmuch_config=data.get("notmuch_config"),
            database=data.get("database"),
            filters=data.get("filters")
        )


@dataclass
class StoreConfig:
    """Store backend selection."""

    backend: str = "notmuch"

    @classmethod
    def from_dict(cls, data: dict) -> "StoreConfig":
        """Create StoreConfig from a dictionary."""
        return cls(
            backend=data.get("backend", "notmuch")
        )


@dataclass
class FilteringConfig:
    """Settings of a filter pass.

    Attributes:
        query_tag: Tag selecting the messages to filter.
        first_match_wins: Stop at the first filter applied to a message.
        isolate_errors: Log a failing message and continue with the next
            one instead of aborting the pass.
        remove_query_tag: Remove query_tag from every processed message.
    """

    query_tag: str = "new"
    first_match_wins: bool = True
    isolate_errors: bool = False
    remove_query_tag: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "FilteringConfig":
        """Create FilteringConfig from a dictionary."""
        return cls(
            query_tag=data.get("query_tag", "new"),
            first_match_wins=data.get("first_match_wins", True),
            isolate_errors=data.get("isolate_errors", False),
            remove_query_tag=data.get("remove_query_tag", True)
        )


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "warning"

    @classmethod
    def from_dict(cls, data: dict) -> "LoggingConfig":
        """Create LoggingConfig from a dictionary.

        Raises:
            ConfigError: If the level is not a known logging level.
        """
        level = str(data.get("level", "warning")).lower()
        if level not in _LOG_LEVELS:
            raise ConfigError(
                f"Invalid logging level '{level}'. "
                f"Must be one of: {', '.join(_LOG_LEVELS)}"
            )
        return cls(level=level)

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.level.upper())


@dataclass
class Config:
    """Complete tagsieve configuration.

    Attributes:
        general: File locations
        store: Store backend selection
        filtering: Filter pass settings
        logging: Logging settings
    """

    general: GeneralConfig = field(default_factory=GeneralConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    filtering: FilteringConfig = field(default_factory=FilteringConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Create Config from a dictionary.

        Args:
            data: Dictionary parsed from TOML file

        Returns:
            Config instance with values from dictionary
        """
        return cls(
            general=GeneralConfig.from_dict(data.get("general", {})),
            store=StoreConfig.from_dict(data.get("store", {})),
            filtering=FilteringConfig.from_dict(data.get("filtering", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {}))
        )


class ConfigLoader:
    """Loader for tagsieve TOML configuration files.

    Example usage:
        loader = ConfigLoader()
        config = loader.load(Path("tagsieve.toml"))

        # Or load defaults when no file exists
        config = loader.load(None)
    """

    def load(self, path: Optional[Path]) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to the TOML configuration file, or None to use defaults

        Returns:
            Config instance with values from file or defaults

        Raises:
            ConfigError: If the file exists but contains invalid TOML
            FileNotFoundError: If the path is specified but file doesn't exist
        """
        if path is None:
            return Config()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            content = path.read_text(encoding="utf-8")
            data = tomli.loads(content)
        except tomli.TOMLDecodeError as e:
            line = self._extract_line_number(str(e))
            raise ConfigError(str(e), line=line, path=path) from e

        try:
            return Config.from_dict(data)
        except ConfigError as e:
            raise ConfigError(str(e), path=path) from e

    def _extract_line_number(self, error_message: str) -> Optional[int]:
        """Extract line number from tomli error message."""
        # tomli error messages often contain "at line N" or "line N"
        match = re.search(r"(?:at )?line (\d+)", error_message, re.IGNORECASE)
        if match:
            return int(match.group(1))
        return None

    def discover_configs(self, start_path: Optional[Path] = None) -> list[Path]:
        """Discover configuration files in order of precedence.

        Precedence order (lowest to highest):
        1. User config: $XDG_CONFIG_HOME/tagsieve/config.toml
           (defaults to ~/.config/tagsieve/config.toml)
        2. Local (start_path): <start_path>/tagsieve.toml

        CLI arguments have highest precedence but are handled separately.

        Args:
            start_path: Directory searched for the local config. If None,
                uses current working directory.

        Returns:
            List of existing config file paths in precedence order (lowest first).
        """
        if start_path is None:
            start_path = Path.cwd()
        else:
            start_path = Path(start_path).resolve()

        configs: list[Path] = []

        config_home = os.environ.get("XDG_CONFIG_HOME")
        if config_home:
            user_config_dir = Path(config_home) / "tagsieve"
        else:
            user_config_dir = Path(os.path.expanduser("~")) / ".config" / "tagsieve"
        user_config = user_config_dir / "config.toml"
        if user_config.exists():
            configs.append(user_config)

        local_config = start_path / "tagsieve.toml"
        if local_config.exists():
            # Don't add duplicate if already in list
            if local_config.resolve() not in [c.resolve() for c in configs]:
                configs.append(local_config)

        return configs

    def load_merged(
        self,
        start_path: Optional[Path] = None,
        extra: Optional[Path] = None,
    ) -> Config:
        """Load and merge configuration from all discovered config files.

        Later (higher precedence) files override values from earlier files.
        Unspecified values fall through from lower precedence configs or
        defaults.

        Args:
            start_path: Starting directory for config discovery. If None,
                uses current working directory.
            extra: An explicitly requested config file, merged last.

        Returns:
            Config instance with merged values from all sources.

        Raises:
            ConfigError: If any config file contains invalid TOML.
            FileNotFoundError: If ``extra`` doesn't exist.
        """
        merged_data: dict = {}

        config_paths = self.discover_configs(start_path)
        if extra is not None:
            if not extra.exists():
                raise FileNotFoundError(f"Config file not found: {extra}")
            config_paths.append(extra)

        for config_path in config_paths:
            try:
                content = config_path.read_text(encoding="utf-8")
                data = tomli.loads(content)
                merged_data = self._deep_merge(merged_data, data)
            except tomli.TOMLDecodeError as e:
                line = self._extract_line_number(str(e))
                raise ConfigError(str(e), line=line, path=config_path) from e

        return Config.from_dict(merged_data)

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge two dictionaries.

        Values from override take precedence over base. Nested dictionaries
        are merged recursively. Lists and other values are replaced entirely.
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def notmuch_config_path(explicit: Optional[Path] = None) -> Path:
    """Return the notmuch config file to read.

    Uses ``explicit`` if given, then $NOTMUCH_CONFIG, then ~/.notmuch-config.
    """
    if explicit is not None:
        return Path(explicit).expanduser()
    env_path = os.environ.get("NOTMUCH_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path(os.path.expanduser("~")) / ".notmuch-config"


def _read_notmuch_database(ini_path: Path) -> Path:
    """Return the ``[database] path`` entry of a notmuch config file.

    Raises:
        ConfigError: If the file is missing, malformed or has no entry.
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        read = parser.read(ini_path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(str(e), path=ini_path) from e
    if not read:
        raise ConfigError("notmuch config not found", path=ini_path)

    try:
        return Path(parser.get("database", "path")).expanduser()
    except (configparser.NoSectionError, configparser.NoOptionError) as e:
        raise ConfigError("No [database] path entry", path=ini_path) from e


def resolve_database_path(config: Config, notmuch_config: Optional[Path] = None) -> Path:
    """Return the notmuch database directory.

    Precedence: an explicitly passed ``notmuch_config`` (the ``-c`` option),
    then ``[general] database``, then the notmuch config named by
    ``[general] notmuch_config``, $NOTMUCH_CONFIG or ~/.notmuch-config.

    Raises:
        ConfigError: If no database path can be determined.
    """
    if notmuch_config is not None:
        return _read_notmuch_database(notmuch_config_path(notmuch_config))

    if config.general.database:
        return Path(config.general.database).expanduser()

    explicit = Path(config.general.notmuch_config) if config.general.notmuch_config else None
    return _read_notmuch_database(notmuch_config_path(explicit))


def resolve_filters_path(config: Config, database: Optional[Path]) -> Path:
    """Return the rule file location.

    ``[general] filters`` wins; the default lives in the notmuch hooks
    directory of the database.

    Raises:
        ConfigError: If neither a filters entry nor a database is known.
    """
    if config.general.filters:
        return Path(config.general.filters).expanduser()
    if database is None:
        raise ConfigError("No rule file configured and no database to look it up in")
    return database / ".notmuch" / "hooks" / RULES_FILENAME
