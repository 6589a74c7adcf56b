"""panekeeper cleanup / close / detect."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from rich.console import Console
from rich.table import Table

from ..adapters import PRIORITY, MultiplexerDetector
from ..config import PaneKeeperConfig, default_home, get_config_path
from ..errors import LockTimeoutError, NoMultiplexerError
from ..panes import PaneLifecycleManager

console = Console()


def _manager(home: Path | None) -> PaneLifecycleManager:
    home = home or default_home()
    config = PaneKeeperConfig.load(get_config_path(home))
    return PaneLifecycleManager.from_config(config, home)


def cleanup_command(*, home: Path | None = None, manager: PaneLifecycleManager | None = None) -> int:
    """Drop registry entries whose panes no longer exist."""
    manager = manager or _manager(home)
    try:
        removed = manager.cleanup()
    except NoMultiplexerError as e:
        console.print(f"[yellow]{e}; cannot verify panes.[/yellow]")
        return 1
    except LockTimeoutError as e:
        console.print(f"[red]Cleanup failed:[/red] {e}")
        return 1

    noun = "entry" if removed == 1 else "entries"
    console.print(f"[green]Removed {removed} stale pane {noun}.[/green]")
    return 0


def close_command(
    pane_id: str, *, home: Path | None = None, manager: PaneLifecycleManager | None = None
) -> int:
    manager = manager or _manager(home)
    adapter = manager.find_adapter()
    if adapter is not None and not adapter.addressable:
        console.print(
            f"[yellow]{adapter.name} cannot target {pane_id}; the focused pane is closed instead.[/yellow]"
        )
    try:
        forgotten = manager.close_pane(pane_id)
    except NoMultiplexerError as e:
        console.print(f"[red]Close failed:[/red] {e}")
        return 1
    except LockTimeoutError as e:
        console.print(f"[red]Close failed:[/red] {e}")
        return 1

    console.print(f"Closed pane [cyan]{pane_id}[/cyan] ({forgotten} registry entries removed)")
    return 0


def detect_command(
    *,
    environ: Optional[Mapping[str, str]] = None,
    detector: MultiplexerDetector | None = None,
    preferred: str | None = None,
) -> int:
    """Show what each backend reports and which one would be used."""
    detector = detector or MultiplexerDetector(environ=environ)
    if preferred is None:
        preferred = PaneKeeperConfig.load().multiplexer
    selected = detector.select(preferred)
    session = detector.detect_session()

    table = Table(title="Terminal Multiplexers", show_header=True, header_style="bold")
    table.add_column("Backend", style="cyan")
    table.add_column("In session", justify="center")
    table.add_column("CLI on PATH", justify="center")
    table.add_column("Selected", justify="center")
    for name in PRIORITY:
        adapter = detector.get_adapter(name)
        if adapter is None:
            continue
        table.add_row(
            name,
            "yes" if adapter.in_session() else "-",
            "yes" if adapter.cli_available() else "-",
            "[green]*[/green]" if selected is adapter else "",
        )
    console.print(table)

    if session is not None:
        console.print(
            f"Session: [bold]{session.multiplexer}[/bold] "
            f"id={session.session_id or '-'} pane={session.pane_id or '-'}"
        )
    if selected is None:
        console.print("[yellow]No terminal multiplexer available.[/yellow]")
        return 1
    return 0
