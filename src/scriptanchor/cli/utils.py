"""Helpers shared by CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from scriptanchor.config import (
    ScriptAnchorSettings,
    get_logger,
    get_settings_for_cli,
)
from scriptanchor.editor.session import EditorSession
from scriptanchor.exceptions import ScriptAnchorError
from scriptanchor.store.sqlite import SQLiteScriptStore

logger = get_logger(__name__)


def load_settings(
    config: Path | None, db_path: Path | None
) -> ScriptAnchorSettings:
    """Resolve settings for a command from --config and --db-path."""
    return get_settings_for_cli(
        config_file=config,
        cli_overrides={"database_path": db_path} if db_path else None,
    )


def open_store(settings: ScriptAnchorSettings) -> SQLiteScriptStore:
    """Open the SQLite store named by the settings."""
    return SQLiteScriptStore(
        settings.database_path, timeout=settings.database_timeout
    )


def fail(console: Console, error: Exception, exit_code: int = 1) -> NoReturn:
    """Report an error and exit."""
    logger.error("Command failed", error=str(error))
    if isinstance(error, ScriptAnchorError):
        console.print(f"[red]Error: {error.message}[/red]")
        if error.hint:
            console.print(f"[yellow]Hint: {error.hint}[/yellow]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(exit_code)


async def load_session(
    settings: ScriptAnchorSettings, project: str
) -> EditorSession:
    """Open an editor session on a project, with indicators computed."""
    session = EditorSession(project, open_store(settings), settings=settings)
    await session.load()
    session.recompute_indicators()
    return session
