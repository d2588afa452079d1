"""Tests for configuration loading and path resolution."""

import logging
from pathlib import Path

import pytest

from tagsieve.core.config import (
    Config,
    ConfigError,
    ConfigLoader,
    FilteringConfig,
    LoggingConfig,
    notmuch_config_path,
    resolve_database_path,
    resolve_filters_path,
)


class TestConfigLoader:
    """Tests for ConfigLoader.load()."""

    def test_load_basic_config(self, tmp_path):
        """Should load all sections of a config file."""
        config_file = tmp_path / "tagsieve.toml"
        config_file.write_text(
            '[general]\n'
            'database = "/var/mail"\n'
            'filters = "/etc/tagsieve/rules.json"\n'
            '\n'
            '[store]\n'
            'backend = "memory"\n'
            '\n'
            '[filtering]\n'
            'query_tag = "unfiltered"\n'
            'first_match_wins = false\n'
            'isolate_errors = true\n'
            'remove_query_tag = false\n'
            '\n'
            '[logging]\n'
            'level = "DEBUG"\n'
        )

        config = ConfigLoader().load(config_file)

        assert config.general.database == "/var/mail"
        assert config.general.filters == "/etc/tagsieve/rules.json"
        assert config.store.backend == "memory"
        assert config.filtering.query_tag == "unfiltered"
        assert config.filtering.first_match_wins is False
        assert config.filtering.isolate_errors is True
        assert config.filtering.remove_query_tag is False
        assert config.logging.level == "debug"

    def test_load_partial_config(self, tmp_path):
        """Unspecified values should keep their defaults."""
        config_file = tmp_path / "tagsieve.toml"
        config_file.write_text('[filtering]\nquery_tag = "inbox"\n')

        config = ConfigLoader().load(config_file)

        assert config.filtering.query_tag == "inbox"
        assert config.filtering.first_match_wins is True
        assert config.store.backend == "notmuch"
        assert config.general.database is None

    def test_load_none_returns_defaults(self):
        config = ConfigLoader().load(None)
        assert config == Config()

    def test_default_values(self):
        config = Config()
        assert config.filtering == FilteringConfig()
        assert config.filtering.query_tag == "new"
        assert config.logging.level == "warning"
        assert config.logging.numeric_level == logging.WARNING

    def test_malformed_toml_error(self, tmp_path):
        """Invalid TOML should raise ConfigError with path and line."""
        config_file = tmp_path / "tagsieve.toml"
        config_file.write_text('[filtering]\nquery_tag = "unclosed\n')

        with pytest.raises(ConfigError) as exc_info:
            ConfigLoader().load(config_file)

        assert exc_info.value.path == config_file
        assert exc_info.value.line == 2
        assert str(config_file) in str(exc_info.value)

    def test_invalid_logging_level(self, tmp_path):
        config_file = tmp_path / "tagsieve.toml"
        config_file.write_text('[logging]\nlevel = "chatty"\n')

        with pytest.raises(ConfigError, match="Invalid logging level 'chatty'"):
            ConfigLoader().load(config_file)

    def test_nonexistent_file_raises_error(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load(tmp_path / "missing.toml")

    def test_logging_config_from_dict(self):
        assert LoggingConfig.from_dict({"level": "Info"}).numeric_level == logging.INFO


class TestNotmuchConfigPath:
    """Tests for locating the notmuch config file."""

    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOTMUCH_CONFIG", str(tmp_path / "env-config"))
        assert notmuch_config_path(tmp_path / "explicit") == tmp_path / "explicit"

    def test_environment_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOTMUCH_CONFIG", str(tmp_path / "env-config"))
        assert notmuch_config_path() == tmp_path / "env-config"

    def test_home_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("NOTMUCH_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert notmuch_config_path() == tmp_path / ".notmuch-config"


class TestResolvePaths:
    """Tests for database and rule file resolution."""

    def test_database_from_config(self, tmp_path):
        config = Config.from_dict({"general": {"database": str(tmp_path / "mail")}})
        assert resolve_database_path(config) == tmp_path / "mail"

    def test_database_from_notmuch_config(self, tmp_path):
        notmuch_config = tmp_path / "notmuch-config"
        notmuch_config.write_text(f"[database]\npath={tmp_path / 'mail'}\n")

        assert resolve_database_path(Config(), notmuch_config) == tmp_path / "mail"

    def test_notmuch_config_from_general_section(self, tmp_path):
        notmuch_config = tmp_path / "notmuch-config"
        notmuch_config.write_text(f"[database]\npath={tmp_path / 'maildir'}\n")
        config = Config.from_dict({"general": {"notmuch_config": str(notmuch_config)}})

        assert resolve_database_path(config) == tmp_path / "maildir"

    def test_explicit_notmuch_config_beats_database_entry(self, tmp_path):
        """A notmuch config passed on the command line overrides [general] database."""
        notmuch_config = tmp_path / "notmuch-config"
        notmuch_config.write_text(f"[database]\npath={tmp_path / 'real'}\n")
        config = Config.from_dict({"general": {"database": "/from/toml"}})

        assert resolve_database_path(config, notmuch_config) == tmp_path / "real"
        assert resolve_database_path(config) == Path("/from/toml")

    def test_missing_notmuch_config(self, tmp_path):
        with pytest.raises(ConfigError, match="notmuch config not found"):
            resolve_database_path(Config(), tmp_path / "missing")

    def test_notmuch_config_without_database_path(self, tmp_path):
        notmuch_config = tmp_path / "notmuch-config"
        notmuch_config.write_text("[user]\nname=Alice\n")

        with pytest.raises(ConfigError, match=r"No \[database\] path"):
            resolve_database_path(Config(), notmuch_config)

    def test_default_filters_path(self, tmp_path):
        path = resolve_filters_path(Config(), tmp_path)
        assert path == tmp_path / ".notmuch" / "hooks" / "tagsieve-rules.json"

    def test_configured_filters_path(self, tmp_path):
        config = Config.from_dict({"general": {"filters": "/etc/rules.json"}})
        assert resolve_filters_path(config, tmp_path) == Path("/etc/rules.json")

    def test_configured_filters_path_without_database(self):
        config = Config.from_dict({"general": {"filters": "/etc/rules.json"}})
        assert resolve_filters_path(config, None) == Path("/etc/rules.json")

    def test_no_filters_and_no_database(self):
        with pytest.raises(ConfigError, match="No rule file configured"):
            resolve_filters_path(Config(), None)
