"""Registry for grouped CLI command modules."""

from __future__ import annotations

import typer
from rich.console import Console

from .config_commands import register_config_commands
from .inspect_commands import register_inspect_commands


def register_command_groups(app: typer.Typer, console: Console) -> None:
    """Attach grouped command modules to the main app."""
    register_config_commands(app=app, console=console)
    register_inspect_commands(app=app, console=console)
