"""Main CLI entry point."""

import os
from typing import Annotated

import typer
from rich.console import Console

from scriptanchor import __version__
from scriptanchor.cli.commands import (
    add_shot_command,
    import_command,
    shots_command,
    show_command,
)
from scriptanchor.config import (
    clear_settings_cache,
    configure_logging,
    get_logger,
    get_settings,
)

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="scriptanchor",
    help="Screenplay block editor core with shot anchoring",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="import")(import_command)
app.command(name="show")(show_command)
app.command(name="shots")(shots_command)
app.command(name="add-shot")(add_shot_command)


@app.command()
def version() -> None:
    """Show ScriptAnchor version."""
    console.print(f"ScriptAnchor v{__version__}")


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug", help="Enable debug logging", envvar="SCRIPTANCHOR_DEBUG"
        ),
    ] = False,
) -> None:
    """Configure global options."""
    if debug:
        os.environ["SCRIPTANCHOR_LOG_LEVEL"] = "DEBUG"
        os.environ["SCRIPTANCHOR_DEBUG"] = "true"
    elif verbose:
        os.environ["SCRIPTANCHOR_LOG_LEVEL"] = "INFO"
    else:
        return

    clear_settings_cache()
    configure_logging(get_settings())
    logger.debug("Debug mode enabled" if debug else "Verbose mode enabled")


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
