#!/usr/bin/env python3
"""
Main CLI entry point using Typer.
"""

import sys
from typing import Optional

import typer

from quobyte_volumes.cli.commands import volume
from quobyte_volumes.cli.lib.config import load_config
from quobyte_volumes.cli.lib.state import RecordStore, get_state_dir
from quobyte_volumes.driver.exceptions import RecordNotFound
from quobyte_volumes.driver.models import DRIVER_CONFIG_FILE, ManagerConfig

app = typer.Typer(
    name="quobyte-volumes",
    help="Quobyte Docker volume plugin",
    add_completion=False,
)

# Add command groups
app.add_typer(volume.app, name="volume", help="Volume inspection commands")


@app.command()
def serve(
    socket: Optional[str] = typer.Option(None, "--socket", help="Unix socket path (default: from config)"),
    host: Optional[str] = typer.Option(None, "--host", help="Bind host instead of a unix socket"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default: from config)"),
    log_level: str = typer.Option("info", "--log-level", help="Log level"),
):
    """
    Run the volume plugin.

    Remounts every volume recorded as mounted, then serves the Docker volume
    plugin API.
    """
    from quobyte_volumes.api.server import run

    try:
        run(load_config(), socket=socket, host=host, port=port, log_level=log_level)
    except Exception as e:
        typer.echo(f"Error starting plugin: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def info():
    """
    Show the persisted driver configuration.
    """
    root = get_state_dir()
    try:
        device = RecordStore(root).load(DRIVER_CONFIG_FILE, ManagerConfig)
    except RecordNotFound:
        typer.echo(f"Driver is not initialized in {root}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.echo(f"Error reading configuration: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Root:         {device.root}")
    typer.echo(f"Registries:   {device.registries}")
    typer.echo(f"User:         {device.user}")
    typer.echo(f"Group:        {device.group}")
    typer.echo(f"VolumeConfig: {device.volume_config}")


def main() -> int:
    """Main entry point."""
    try:
        app()
        return 0
    except KeyboardInterrupt:
        typer.echo("\nOperation cancelled by user", err=True)
        return 130
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
