"""Config command group."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from mcpforge.config.loader import convert_to_camel, get_config_path, load_config, save_config
from mcpforge.config.schema import Config


def register_config_commands(app: typer.Typer, console: Console) -> None:
    """Register config init/show commands."""
    config_app = typer.Typer(help="Config helpers (init/show)")
    app.add_typer(config_app, name="config")

    @config_app.command("init")
    def config_init(
        force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config file"),
    ) -> None:
        """Write a config file with default values."""
        path = get_config_path()
        if path.exists() and not force:
            console.print(f"[yellow]Config already exists:[/yellow] {path} (use --force to overwrite)")
            raise typer.Exit(1)
        save_config(Config(), path)
        console.print(f"[green]✓[/green] Wrote {path}")

    @config_app.command("show")
    def config_show(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """Print the effective configuration (file plus environment overrides)."""
        path = config_path or get_config_path()
        try:
            config = load_config(path)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        console.print(f"Config: {path} {'[green]✓[/green]' if path.exists() else '[dim](defaults)[/dim]'}")
        console.print(json.dumps(convert_to_camel(config.model_dump()), indent=2, ensure_ascii=False))
