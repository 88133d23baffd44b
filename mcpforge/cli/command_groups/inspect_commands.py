"""Inspection commands: methods, protocol and batch stats."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from mcpforge.config.loader import load_config


def register_inspect_commands(app: typer.Typer, console: Console) -> None:
    """Register methods/protocol/stats commands."""

    @app.command("methods")
    def methods(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """List the methods the configured service would expose."""
        from mcpforge.api.rpc.service import McpService

        service = McpService.from_config(load_config(config_path))
        table = Table(title="MCP Methods")
        table.add_column("Method", style="cyan")
        table.add_column("Required")
        table.add_column("Optional", style="dim")
        table.add_column("Class")
        table.add_column("Cached")
        for d in service.registry.descriptors():
            table.add_row(
                d.method,
                ", ".join(d.required_params) or "-",
                ", ".join(d.optional_params) or "-",
                d.rate_limit_class.value,
                "[green]yes[/green]" if d.cacheable else "no",
            )
        console.print(table)

    @app.command("protocol")
    def protocol(
        config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    ) -> None:
        """Print protocol info and capabilities."""
        from mcpforge.api.rpc.service import McpService

        service = McpService(load_config(config_path))
        console.print_json(json.dumps({"protocol": service.protocol_info(), "limits": service.capabilities()["limits"]}))

    @app.command("stats")
    def stats(
        url: str = typer.Option(None, "--url", help="Server base URL (default from config)"),
    ) -> None:
        """Fetch batch and concurrency stats from a running server."""
        from mcpforge.cli.shared.http_utils import get_server_base_url, http_json

        base = url or get_server_base_url(load_config())
        try:
            status, body = http_json("GET", f"{base}/mcp/batch-stats")
        except RuntimeError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        if status != 200:
            console.print(f"[red]HTTP {status}[/red]")
        console.print_json(json.dumps(body))
