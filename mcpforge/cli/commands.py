"""CLI commands for mcpforge.

The CLI is the single entry point: `serve` runs the HTTP binding, `call`
talks to a running server, and the command groups (config, methods,
protocol, stats) inspect configuration and state.
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from mcpforge import __logo__, __version__
from mcpforge.cli.command_groups.group_registry import register_command_groups
from mcpforge.cli.shared.logging_utils import configure_console_logging, ensure_rotating_log_file

app = typer.Typer(
    name="mcpforge",
    help=f"{__logo__} mcpforge - MCP JSON-RPC request server",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} mcpforge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """mcpforge - MCP JSON-RPC request server."""
    pass


@app.command()
def version():
    """Show version."""
    console.print(f"{__logo__} mcpforge v{__version__}")


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Bind host (default from config)"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port (default from config)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    log_level: str = typer.Option(None, "--log-level", "-l", help="Log level (default from config)"),
    log_file: bool = typer.Option(None, "--log-file/--no-log-file", help="Also write a rotating log file"),
):
    """Start the MCP HTTP server."""
    from mcpforge.api.server import run_server
    from mcpforge.config.loader import load_config

    try:
        config = load_config(config_path)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    level = (log_level or config.logging.level).upper()
    configure_console_logging(level)
    console.print(f"{__logo__} Starting mcpforge on {host or config.server.host}:{port or config.server.port}...")
    if log_file if log_file is not None else config.logging.file_enabled:
        path = ensure_rotating_log_file("serve", level=level)
        console.print(f"[dim]Logs: {path}[/dim]")

    run_server(config, host=host, port=port, log_level="debug" if level == "DEBUG" else "warning")


@app.command()
def call(
    method: str = typer.Argument(..., help="Method name"),
    params: str = typer.Option(None, "--params", "-P", help="Params as a JSON object"),
    priority: str = typer.Option(None, "--priority", help="low, normal, high or critical"),
    url: str = typer.Option(None, "--url", help="Server base URL (default from config)"),
    client_id: str = typer.Option("mcpforge-cli", "--client-id", help="X-Client-Id header"),
):
    """Send one request to a running server and print the response."""
    from mcpforge.cli.shared.http_utils import build_request, get_server_base_url, http_json
    from mcpforge.config.loader import load_config

    parsed = None
    if params:
        try:
            parsed = json.loads(params)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"--params is not valid JSON: {e}")
        if not isinstance(parsed, dict):
            raise typer.BadParameter("--params must be a JSON object")

    config = load_config()
    base = url or get_server_base_url(config)
    req = build_request(method, parsed, jsonrpc=config.protocol.jsonrpc, priority=priority)
    try:
        status, body = http_json("POST", f"{base}/mcp", req, client_id=client_id)
    except RuntimeError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    style = "green" if status == 200 else "red"
    console.print(f"[{style}]HTTP {status}[/{style}]")
    console.print_json(json.dumps(body))
    if status != 200:
        raise typer.Exit(1)


register_command_groups(app, console)


if __name__ == "__main__":
    app()
