"""List anchored shots and create new ones from script text."""

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scriptanchor.cli.utils import fail, load_session, load_settings
from scriptanchor.editor.indicators import ShotIndicator, find_matching_blocks
from scriptanchor.editor.selection import SelectionAnchor
from scriptanchor.exceptions import ScriptAnchorError, ValidationError
from scriptanchor.models import ShotRecord

console = Console()

ProjectOption = Annotated[
    str, typer.Option("--project", "-p", help="Project identifier")
]
DbPathOption = Annotated[
    Path | None,
    typer.Option("--db-path", help="Path to the SQLite store"),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file (YAML, TOML, or JSON)",
    ),
]


def _preview(text: str | None, width: int = 40) -> str:
    flat = " ".join((text or "").split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def shots_command(
    project: ProjectOption,
    db_path: DbPathOption = None,
    config: ConfigOption = None,
) -> None:
    """Show where each shot's text sits in the script now.

    Shots whose text can no longer be found are listed as stale; they stay in
    the store untouched.
    """

    async def run() -> tuple[list[ShotIndicator], list[ShotRecord]]:
        session = await load_session(settings, project)
        await session.close()
        return session.indicators, session.shots

    try:
        settings = load_settings(config, db_path)
        indicators, shots = asyncio.run(run())
    except ScriptAnchorError as e:
        fail(console, e)

    table = Table(title=f"Shots: {project}")
    table.add_column("Scene", style="yellow", justify="right")
    table.add_column("Text", style="white")
    table.add_column("Shots", style="cyan", justify="right")
    table.add_column("Top", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("Blocks", justify="right")

    located: set[Any] = set()
    for indicator in indicators:
        located.update(shot.id for shot in indicator.shots)
        table.add_row(
            str(indicator.scene_number),
            escape(_preview(indicator.selection_text)),
            str(indicator.count),
            f"{indicator.top_offset:.0f}",
            f"{indicator.height:.0f}",
            str(len(indicator.block_ids)),
        )
    console.print(table)

    stale = [s for s in shots if s.selection_text and s.id not in located]
    if stale:
        console.print(
            f"[yellow]{len(stale)} shot(s) no longer match the script:[/yellow]"
        )
        for shot in stale:
            console.print(
                f"  scene {shot.scene_number}: {escape(shot.title)} "
                f"[dim]{escape(_preview(shot.selection_text))}[/dim]"
            )


def add_shot_command(
    project: ProjectOption,
    scene: Annotated[
        int, typer.Option("--scene", "-s", help="Scene number", min=1)
    ],
    text: Annotated[
        str, typer.Option("--text", "-t", help="Script text the shot covers")
    ],
    title: Annotated[
        str | None, typer.Option("--title", help="Shot title")
    ] = None,
    db_path: DbPathOption = None,
    config: ConfigOption = None,
) -> None:
    """Create a shot anchored to text in a scene.

    The text must currently appear in the scene (whitespace and case are
    ignored). Framing defaults follow the type of the block where the text
    starts.
    """

    async def run() -> ShotRecord | None:
        session = await load_session(settings, project)
        try:
            if scene > len(session.scenes):
                raise ValidationError(
                    message=f"Scene {scene} does not exist",
                    details={"scene_count": len(session.scenes)},
                )
            target = session.scenes[scene - 1]
            block_ids = find_matching_blocks(target.blocks, text)
            if not block_ids or len(text.strip()) < settings.min_selection_length:
                raise ValidationError(
                    message=f"Text not found in scene {scene}",
                    hint="Copy the text exactly as it appears in the scene",
                )
            anchor = SelectionAnchor(
                text=text.strip(),
                block_type=target.get_block(block_ids[0]).type,
                scene_id=target.id,
                scene_number=scene,
            )
            overrides = {"title": title} if title else {}
            return await session.create_shot(anchor, **overrides)
        finally:
            await session.close()

    try:
        settings = load_settings(config, db_path)
        created = asyncio.run(run())
    except ScriptAnchorError as e:
        fail(console, e)

    if created is None:
        console.print("[red]Error: the shot could not be created[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]Created {escape(created.title)} in scene {created.scene_number}: "
        f"{created.shot_type} / {created.shot_angle}[/green]"
    )
