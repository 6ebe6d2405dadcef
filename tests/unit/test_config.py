"""Unit tests for configuration module."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from scriptanchor.config import (
    ScriptAnchorSettings,
    configure_logging,
    get_settings,
    get_settings_for_cli,
    set_settings,
)
from scriptanchor.exceptions import ConfigurationError


class TestScriptAnchorSettings:
    """Test ScriptAnchorSettings configuration."""

    def test_default_settings(self):
        settings = ScriptAnchorSettings(_env_file=None)
        assert settings.autosave_delay == 2.0
        assert settings.indicator_settle_delay == 0.2
        assert settings.min_selection_length == 3
        assert settings.default_scene_heading == "Scene 1"
        assert settings.database_path.name == "scriptanchor.db"

    def test_settings_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCRIPTANCHOR_DATABASE_PATH", str(tmp_path / "env.db"))
        monkeypatch.setenv("SCRIPTANCHOR_AUTOSAVE_DELAY", "5")
        settings = ScriptAnchorSettings(_env_file=None)
        assert settings.database_path == tmp_path / "env.db"
        assert settings.autosave_delay == 5.0

    def test_database_path_expansion(self, monkeypatch):
        settings = ScriptAnchorSettings(_env_file=None, database_path="~/anchor.db")
        assert str(settings.database_path).startswith(str(Path.home()))

        monkeypatch.setenv("ANCHOR_DIR", "/custom/path")
        settings = ScriptAnchorSettings(
            _env_file=None, database_path="$ANCHOR_DIR/anchor.db"
        )
        assert settings.database_path == Path("/custom/path/anchor.db")

    def test_log_level_case_insensitive(self):
        settings = ScriptAnchorSettings(_env_file=None, log_level="debug")
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"autosave_delay": 0},
            {"min_selection_length": 0},
            {"log_level": "LOUD"},
            {"log_format": "xml"},
            {"database_path": ["a", "b"]},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(PydanticValidationError):
            ScriptAnchorSettings(_env_file=None, **overrides)


class TestConfigFiles:
    """Test loading settings from files."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("autosave_delay: 4\nmin_selection_length: 5\n")
        settings = ScriptAnchorSettings.from_file(path)
        assert settings.autosave_delay == 4.0
        assert settings.min_selection_length == 5

    def test_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('default_scene_heading = "Opening"\n')
        assert ScriptAnchorSettings.from_file(path).default_scene_heading == "Opening"

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"indicator_settle_delay": 0.5}))
        assert ScriptAnchorSettings.from_file(path).indicator_settle_delay == 0.5

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[x]\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ScriptAnchorSettings.from_file(path)
        assert ".ini" in exc_info.value.message

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScriptAnchorSettings.from_file(tmp_path / "absent.yaml")

    def test_common_key_mistake(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("db_path: /tmp/x.db\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ScriptAnchorSettings.from_file(path)
        assert "database_path" in exc_info.value.hint

    def test_later_files_override_earlier(self, tmp_path):
        first = tmp_path / "a.yaml"
        first.write_text("autosave_delay: 4\nmin_selection_length: 5\n")
        second = tmp_path / "b.yaml"
        second.write_text("autosave_delay: 6\n")
        settings = ScriptAnchorSettings.from_multiple_sources(
            config_files=[first, second, tmp_path / "absent.yaml"]
        )
        assert settings.autosave_delay == 6.0
        assert settings.min_selection_length == 5

    def test_cli_args_win(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("autosave_delay: 4\n")
        settings = ScriptAnchorSettings.from_multiple_sources(
            config_files=[path], cli_args={"autosave_delay": 1.5, "debug": None}
        )
        assert settings.autosave_delay == 1.5


class TestGlobalSettings:
    """Test the global settings accessors."""

    def test_get_set_settings(self):
        custom = ScriptAnchorSettings(_env_file=None, min_selection_length=9)
        set_settings(custom)
        assert get_settings() is custom
        set_settings(None)
        assert get_settings() is not custom

    def test_cli_overrides(self, tmp_path):
        settings = get_settings_for_cli(
            cli_overrides={"database_path": tmp_path / "cli.db"}
        )
        assert settings.database_path == tmp_path / "cli.db"

    def test_cli_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_settings_for_cli(config_file=tmp_path / "absent.yaml")


class TestLogging:
    """Test logging configuration."""

    @pytest.mark.parametrize("log_format", ["console", "json", "structured"])
    def test_configure_logging(self, log_format):
        settings = ScriptAnchorSettings(
            _env_file=None, log_level="INFO", log_format=log_format
        )
        configure_logging(settings)
        assert logging.getLogger().level == logging.INFO

    def test_log_file_created(self, tmp_path):
        log_file = tmp_path / "logs" / "anchor.log"
        configure_logging(ScriptAnchorSettings(_env_file=None, log_file=log_file))
        assert log_file.parent.exists()
