"""Show a project's script as typed blocks."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scriptanchor.cli.utils import fail, load_session, load_settings
from scriptanchor.editor.blocks import Script
from scriptanchor.exceptions import ScriptAnchorError

console = Console()


def show_command(
    project: Annotated[
        str, typer.Option("--project", "-p", help="Project identifier")
    ],
    scene: Annotated[
        int | None,
        typer.Option("--scene", "-s", help="Only show this scene number", min=1),
    ] = None,
    db_path: Annotated[
        Path | None,
        typer.Option("--db-path", help="Path to the SQLite store"),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (YAML, TOML, or JSON)",
        ),
    ] = None,
) -> None:
    """Print scenes, numbered by position, with each block's type."""

    async def run() -> Script:
        session = await load_session(settings, project)
        await session.close()
        return session.scenes

    try:
        settings = load_settings(config, db_path)
        scenes = asyncio.run(run())
    except ScriptAnchorError as e:
        fail(console, e)

    table = Table(title=f"Script: {project}", show_lines=False)
    table.add_column("Scene", style="yellow", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Content", style="white", no_wrap=False)

    for index, item in enumerate(scenes):
        number = index + 1
        if scene is not None and number != scene:
            continue
        heading = f"[bold]{escape(item.heading)}[/bold]"
        table.add_row(str(number), "scene_heading", heading)
        for block in item.blocks:
            content = escape(block.content) if block.content else "[dim]<empty>[/dim]"
            table.add_row("", block.type.value, content)

    console.print(table)
