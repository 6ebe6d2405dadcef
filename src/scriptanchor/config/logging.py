"""Logging configuration for ScriptAnchor.

All loggers are structlog loggers routed through the standard library, so the
same handlers serve structlog events and plain ``logging`` records.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from scriptanchor.config.settings import ScriptAnchorSettings

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _resolve_level(name: str) -> int:
    """Map a level name to its numeric value.

    Raises:
        ValueError: If the name is not a logging level.
    """
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        known = sorted(
            n for n in logging.getLevelNamesMapping() if not n.startswith("_")
        )
        raise ValueError(
            f"Invalid log level '{name}'. Valid levels are: {', '.join(known)}"
        )
    return level


def _console_renderer() -> structlog.dev.ConsoleRenderer:
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.rich_traceback,
    )


def _build_formatter(log_format: str) -> ProcessorFormatter:
    """Create the stdlib formatter that renders structlog events."""
    renderers: dict[str, Any] = {
        "json": structlog.processors.JSONRenderer(),
        "structured": structlog.processors.KeyValueRenderer(
            key_order=["timestamp", "level", "logger", "event"],
            drop_missing=True,
        ),
    }
    return ProcessorFormatter(
        processor=renderers.get(log_format) or _console_renderer(),
        foreign_pre_chain=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
        ],
    )


def _build_handlers(
    settings: ScriptAnchorSettings, level: int
) -> list[logging.Handler]:
    """Stderr handler plus an optional rotating file handler."""
    formatter = _build_formatter(settings.log_format)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(log_path),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers


def _build_processors(settings: ScriptAnchorSettings) -> list[Any]:
    """Processor chain for structlog loggers."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.dict_tracebacks,
    ]
    if settings.debug:
        callsite = structlog.processors.CallsiteParameter
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    callsite.FILENAME,
                    callsite.LINENO,
                    callsite.FUNC_NAME,
                ]
            )
        )

    processors.append(structlog.processors.format_exc_info)

    # pytest's caplog only sees records rendered by the stdlib formatter
    in_pytest = "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ
    if settings.log_format in {"json", "structured"} or in_pytest:
        processors.extend(
            [
                structlog.stdlib.render_to_log_kwargs,
                ProcessorFormatter.wrap_for_formatter,
            ]
        )
    else:
        processors.append(_console_renderer())
    return processors


def configure_logging(settings: ScriptAnchorSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Application settings containing logging configuration.

    Raises:
        ValueError: If the log level is not known to the logging module.
    """
    level = _resolve_level(settings.log_level)

    logging.basicConfig(
        level=level,
        handlers=_build_handlers(settings, level),
        force=True,
    )
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=_build_processors(settings),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
