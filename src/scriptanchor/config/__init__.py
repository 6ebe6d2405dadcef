"""Settings and logging for ScriptAnchor.

Logging is configured when first accessed: the first call to ``get_logger``
applies the global settings. Modules ask for their logger at import time, so
importing any ScriptAnchor module configures logging.
"""

from __future__ import annotations

from typing import Any

from scriptanchor.config import logging as _logging
from scriptanchor.config import settings as _settings
from scriptanchor.config.logging import configure_logging
from scriptanchor.config.settings import (
    ScriptAnchorSettings,
    clear_settings_cache,
    get_settings,
    get_settings_for_cli,
    set_settings,
)

__all__ = [
    "ScriptAnchorSettings",
    "clear_settings_cache",
    "configure_logging",
    "get_logger",
    "get_settings",
    "get_settings_for_cli",
    "reset_settings",
    "set_settings",
]

_configured = False
_loggers: dict[str, Any] = {}


def get_logger(name: str) -> Any:
    """Return the cached structlog logger for ``name``."""
    global _configured
    logger = _loggers.get(name)
    if logger is None:
        if not _configured:
            configure_logging(get_settings())
            _configured = True
        logger = _loggers[name] = _logging.get_logger(name)
    return logger


def reset_settings() -> None:
    """Drop cached settings and loggers; both reload on next use."""
    global _configured
    _settings.reset_settings()
    _configured = False
    _loggers.clear()
