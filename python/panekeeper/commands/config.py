"""panekeeper config show / set / reset."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import PaneKeeperConfig, get_config_path, reset_config, set_config_value

console = Console()


def config_show_command(*, path: Path | None = None) -> int:
    config_path = path or get_config_path()
    config = PaneKeeperConfig.load(config_path)

    table = Table(title=f"Config ({config_path})", show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)
    if not config_path.exists():
        console.print("[dim]No config file yet; showing defaults.[/dim]")
    return 0


def config_set_command(key: str, value: str, *, path: Path | None = None) -> int:
    try:
        config = set_config_value(key, value, path=path)
    except KeyError:
        valid = ", ".join(PaneKeeperConfig.field_names())
        console.print(f"[red]Unknown key:[/red] {key}")
        console.print(f"[dim]Valid keys: {valid}[/dim]")
        return 1
    except ValueError as e:
        console.print(f"[red]Invalid value for {key}:[/red] {e}")
        return 1

    console.print(f"[green]{key}[/green] = {getattr(config, key)}")
    return 0


def config_reset_command(*, force: bool = False, path: Path | None = None) -> int:
    config_path = path or get_config_path()
    if not force and config_path.exists():
        if not typer.confirm(f"Overwrite {config_path} with defaults?"):
            console.print("[dim]Cancelled.[/dim]")
            return 1
    reset_config(config_path)
    console.print(f"[green]Config reset:[/green] {config_path}")
    return 0
