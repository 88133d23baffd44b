"""Entry point for `python -m mcpforge`."""

from mcpforge.cli.commands import app

if __name__ == "__main__":
    app()
