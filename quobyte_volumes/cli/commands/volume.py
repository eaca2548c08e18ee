"""
Volume inspection commands.

These read the record store directly and never mutate it; create, mount,
unmount and delete go through the running plugin.
"""

import typer

from quobyte_volumes.cli.lib.state import RecordStore, get_state_dir
from quobyte_volumes.cli.lib.validators import validate_name
from quobyte_volumes.driver.exceptions import RecordNotFound
from quobyte_volumes.driver.models import VolumeRecord
from quobyte_volumes.driver.registry import VolumeRegistry, volume_key

app = typer.Typer(help="Volume inspection commands")


@app.command()
def info(name: str = typer.Argument(..., help="Volume name")):
    """
    Show one volume.
    """
    try:
        validate_name(name)
        vol = RecordStore(get_state_dir()).load(volume_key(name), VolumeRecord)
    except RecordNotFound:
        typer.echo(f"Volume {name} not found", err=True)
        raise typer.Exit(1)
    except Exception as e:
        typer.echo(f"Error reading volume: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Name:       {vol.name}")
    typer.echo(f"ID:         {vol.id}")
    typer.echo(f"State:      {vol.state.value}")
    typer.echo(f"MountPoint: {vol.mount_point or ''}")
    typer.echo(f"User:       {vol.user}")
    typer.echo(f"Group:      {vol.group}")
    typer.echo(f"Config:     {vol.config}")


@app.command()
def list():
    """
    List volumes.
    """
    try:
        store = RecordStore(get_state_dir())
        names = VolumeRegistry(store).list_volume_names()
        if not names:
            typer.echo("No volumes found")
            return
        for name in names:
            vol = store.load(volume_key(name), VolumeRecord)
            typer.echo(f"{vol.name} id={vol.id} state={vol.state.value} mount={vol.mount_point or '-'}")
    except Exception as e:
        typer.echo(f"Error listing volumes: {e}", err=True)
        raise typer.Exit(1)
