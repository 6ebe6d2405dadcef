"""ScriptAnchor configuration settings."""

from __future__ import annotations

import json
import os
import tomllib
from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from scriptanchor.exceptions import ConfigurationError, check_config_keys


class ScriptAnchorSettings(BaseSettings):
    """ScriptAnchor configuration settings.

    Settings are loaded with the following precedence (highest to lowest):
    1. CLI arguments (when provided via command flags)
       Example: scriptanchor show --project demo --db-path /custom/path.db

    2. Config file values (YAML, TOML, or JSON)
       Example: scriptanchor --config myconfig.yaml
       Multiple files: Later files override earlier ones

    3. Environment variables (prefixed with SCRIPTANCHOR_)
       Example: export SCRIPTANCHOR_AUTOSAVE_DELAY=5

    4. .env file (in current directory or specified path)

    5. Default values (defined in field declarations below)
    """

    model_config = SettingsConfigDict(
        env_prefix="SCRIPTANCHOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Store settings
    database_path: Path = Field(
        default_factory=lambda: Path.cwd() / "scriptanchor.db",
        description="Path to the SQLite store used by the command line",
    )
    database_timeout: float = Field(
        default=30.0,
        description="SQLite connection timeout in seconds",
        ge=0.1,
    )

    # Editor settings
    autosave_delay: float = Field(
        default=2.0,
        description="Seconds of inactivity before edits are flushed to the store",
        gt=0.0,
    )
    indicator_settle_delay: float = Field(
        default=0.2,
        description=(
            "Seconds to wait for layout to settle before shot indicators "
            "are recomputed"
        ),
        ge=0.0,
    )
    min_selection_length: int = Field(
        default=3,
        description="Selections shorter than this never produce an anchor",
        ge=1,
    )
    default_scene_heading: str = Field(
        default="Scene 1",
        description="Heading used when a script has no scene heading at all",
        min_length=1,
    )
    scene_description_length: int = Field(
        default=200,
        description="Maximum length of the description in scene header records",
        ge=0,
    )

    # Debug settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging settings
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        pattern="^(?i)(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_format: str = Field(
        default="console",
        description="Log output format (console, json, structured)",
        pattern="^(?i)(console|json|structured)$",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    @field_validator("database_path", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        """Expand environment variables and ``~`` and resolve the path."""
        if v is None:
            return None
        if isinstance(v, str):
            expanded = os.path.expandvars(v)
            return Path(expanded).expanduser().resolve()
        if isinstance(v, Path):
            return v.resolve()
        if isinstance(v, (dict, list, set, tuple)):  # noqa: UP038
            raise ValueError(
                f"Path fields cannot accept {type(v).__name__} types. "
                f"Expected str or Path, got: {v!r}"
            )
        return Path(str(v)).resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.upper()
        raise ValueError(f"log_level must be a string, got {type(v).__name__}")

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str:
        """Normalize log format to lowercase for case-insensitive handling."""
        if isinstance(v, str):
            return v.lower()
        raise ValueError(f"log_format must be a string, got {type(v).__name__}")

    @classmethod
    def from_env(cls) -> ScriptAnchorSettings:
        """Create settings from environment variables."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path | str) -> ScriptAnchorSettings:
        """Load settings from a YAML, TOML or JSON file.

        Raises:
            ConfigurationError: If the format is unsupported or a key is a
                known misspelling.
            FileNotFoundError: If the file does not exist.
        """
        return cls(**_read_config_file(Path(config_path)))

    @classmethod
    def from_multiple_sources(
        cls,
        config_files: list[Path | str] | None = None,
        env_file: Path | str | None = None,
        cli_args: dict[str, Any] | None = None,
    ) -> ScriptAnchorSettings:
        """Merge settings from every source.

        Later config files override earlier ones, values set in files
        override the environment, and non-None CLI arguments override
        everything. Missing config files are skipped with a warning.
        """
        data: dict[str, Any] = {}
        for config_file in config_files or []:
            try:
                file_settings = cls.from_file(config_file)
            except FileNotFoundError:
                from scriptanchor.config.logging import get_logger as _get_logger

                _get_logger(__name__).warning(
                    "Configuration file not found, skipping",
                    config_file=str(config_file),
                )
                continue
            data.update(file_settings.model_dump(exclude_unset=True))

        if env_file:
            settings = cast(
                "ScriptAnchorSettings", cast(Any, cls)(_env_file=env_file, **data)
            )
        else:
            settings = cls(**data)
        return _apply_overrides(settings, cli_args)


CONFIG_SUFFIXES = (".yml", ".yaml", ".toml", ".json")


def _read_config_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix in {".yml", ".yaml"}:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    elif suffix == ".toml":
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    elif suffix == ".json":
        data = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        raise ConfigurationError(
            message=f"Unsupported configuration file format: {suffix}",
            hint="Use one of: " + ", ".join(CONFIG_SUFFIXES),
            details={
                "file": str(config_path),
                "detected_format": suffix,
                "supported_formats": list(CONFIG_SUFFIXES),
            },
        )

    if not isinstance(data, dict):
        raise ConfigurationError(
            message="Configuration file must contain a mapping of settings",
            details={"file": str(config_path), "found": type(data).__name__},
        )
    check_config_keys(data)
    return data


def _apply_overrides(
    settings: ScriptAnchorSettings, overrides: dict[str, Any] | None
) -> ScriptAnchorSettings:
    """Return ``settings`` with every non-None override applied."""
    changes = {k: v for k, v in (overrides or {}).items() if v is not None}
    if not changes:
        return settings
    return ScriptAnchorSettings(**{**settings.model_dump(), **changes})


_settings: ScriptAnchorSettings | None = None
_config_paths_cache: list[Path | str] | None = None


def _get_config_paths() -> list[Path | str]:
    """Existing default config files, lowest priority first.

    User-level files under ``~/.config/scriptanchor`` come before project files
    in the working directory, so the project wins.
    """
    global _config_paths_cache

    if _config_paths_cache is None:
        user_dir = Path.home() / ".config" / "scriptanchor"
        candidates = [user_dir / f"config{ext}" for ext in (".yaml", ".json", ".toml")]
        candidates += [
            Path.cwd() / f"scriptanchor{ext}" for ext in (".yaml", ".json", ".toml")
        ]
        found: list[Path | str] = []
        for path in candidates:
            try:
                if path.is_file():
                    found.append(path)
            except OSError:
                continue
        _config_paths_cache = found
    return _config_paths_cache


def get_settings() -> ScriptAnchorSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        paths = _get_config_paths()
        _settings = (
            ScriptAnchorSettings.from_multiple_sources(config_files=paths)
            if paths
            else ScriptAnchorSettings.from_env()
        )
    return _settings


def set_settings(settings: ScriptAnchorSettings | None) -> None:
    """Replace the process-wide settings; None reloads them lazily."""
    global _settings
    _settings = settings


def clear_settings_cache() -> None:
    """Forget loaded settings and discovered config files."""
    global _settings, _config_paths_cache
    _settings = None
    _config_paths_cache = None


def reset_settings() -> None:
    clear_settings_cache()


def get_settings_for_cli(
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> ScriptAnchorSettings:
    """Settings for a CLI command.

    Args:
        config_file: Explicit ``--config`` file; replaces the default config
            locations when given.
        cli_overrides: Values from command flags; None values are ignored.

    Raises:
        FileNotFoundError: If ``config_file`` does not exist.
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        return ScriptAnchorSettings.from_multiple_sources(
            config_files=[config_file], cli_args=cli_overrides
        )
    return _apply_overrides(get_settings(), cli_overrides)
