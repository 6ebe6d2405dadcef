"""Import a plain-text screenplay into the store."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scriptanchor.cli.utils import fail, load_settings, open_store
from scriptanchor.editor.autosave import AutosaveCoordinator
from scriptanchor.editor.blocks import parse_script
from scriptanchor.editor.classification import parse_plain_text
from scriptanchor.exceptions import ScriptAnchorError

console = Console()


def import_command(
    path: Annotated[
        Path,
        typer.Argument(
            help="Plain-text screenplay to import",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    project: Annotated[
        str, typer.Option("--project", "-p", help="Project identifier")
    ],
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
    """Classify a plain-text screenplay into blocks and save it.

    Lines starting with INT./EXT. open scenes, upper-case lines start
    dialogue, "( ... )" lines inside dialogue are parentheticals and
    "... TO:" lines are transitions. Any existing script of the project is
    replaced.
    """
    try:
        settings = load_settings(config, db_path)
        records = parse_plain_text(path.read_text(encoding="utf-8"))
        scenes = parse_script(records, settings.default_scene_heading)

        saver = AutosaveCoordinator(
            project,
            open_store(settings),
            snapshot=lambda: scenes,
            delay=settings.autosave_delay,
            description_length=settings.scene_description_length,
        )
        if not asyncio.run(saver.save_now()):
            console.print("[red]Error: the script could not be saved[/red]")
            raise typer.Exit(1)
    except (ScriptAnchorError, OSError, UnicodeDecodeError) as e:
        fail(console, e)

    block_count = sum(len(scene.blocks) for scene in scenes)
    console.print(
        f"[green]Imported {len(scenes)} scenes ({block_count} blocks) "
        f"into project '{project}'[/green]"
    )
