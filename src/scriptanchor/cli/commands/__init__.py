"""CLI command implementations."""

from scriptanchor.cli.commands.import_script import import_command
from scriptanchor.cli.commands.shots import add_shot_command, shots_command
from scriptanchor.cli.commands.show import show_command

__all__ = [
    "add_shot_command",
    "import_command",
    "shots_command",
    "show_command",
]
