"""panekeeper status - tracked panes and task sessions."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..adapters import MultiplexerAdapter
from ..config import PaneKeeperConfig, default_home, get_config_path
from ..panes import PaneLifecycleManager, RegistryState
from ..tasks import SessionStore, TimeTracker
from ..tasks.synchronizer import TASKS_DIRNAME

console = Console()


def _alive_label(adapter: Optional[MultiplexerAdapter], pane_id: str) -> str:
    if adapter is None:
        return "[dim]?[/dim]"
    if not adapter.supports_pane_info:
        return "[dim]unknown[/dim]"
    return "[green]yes[/green]" if adapter.get_pane_info(pane_id) else "[red]no[/red]"


def _panes_table(state: RegistryState, adapter: Optional[MultiplexerAdapter]) -> Table:
    table = Table(title="Agent Panes", show_header=True, header_style="bold")
    table.add_column("Task", style="cyan")
    table.add_column("Pane")
    table.add_column("Backend", style="dim")
    table.add_column("Agent")
    table.add_column("Description", max_width=40)
    table.add_column("Alive", justify="center")
    for key, entry in state.panes.items():
        table.add_row(
            key,
            entry.pane_id,
            entry.multiplexer,
            entry.agent_type,
            entry.description or "-",
            _alive_label(adapter, entry.pane_id),
        )
    return table


def _sessions_table(sessions: SessionStore) -> Table:
    table = Table(title="Task Sessions", show_header=True, header_style="bold")
    table.add_column("Session", style="cyan")
    table.add_column("Agent")
    table.add_column("Progress", justify="right")
    table.add_column("Elapsed", justify="right", style="dim")
    table.add_column("Current", style="yellow", max_width=40)
    for session in sessions.all_sessions():
        progress = session.progress
        table.add_row(
            session.session_id,
            session.agent_type,
            f"{progress.completed}/{progress.total} ({progress.percentage}%)",
            TimeTracker.format_compact(progress.total_elapsed_ms),
            session.current_task or "-",
        )
    return table


def status_command(*, home: Path | None = None, verify: bool = True) -> int:
    """Show the pane registry and task sessions under ``home``."""
    home = home or default_home()
    config = PaneKeeperConfig.load(get_config_path(home))
    manager = PaneLifecycleManager.from_config(config, home)
    adapter = manager.find_adapter() if verify else None

    console.print(f"[bold]Home[/bold]: {home}")
    console.print(f"[bold]Enabled[/bold]: {'yes' if config.enabled else 'no'}")
    backend = adapter.name if adapter else ("[dim]not checked[/dim]" if not verify else "[yellow]none[/yellow]")
    console.print(f"[bold]Multiplexer[/bold]: {backend}")

    state = manager.registry.load()
    if state.panes:
        console.print(_panes_table(state, adapter))
    else:
        console.print("[dim]No agent panes tracked.[/dim]")

    sessions = SessionStore(home / TASKS_DIRNAME).load()
    if sessions.all_sessions():
        console.print(_sessions_table(sessions))
        if sessions.pane_id:
            console.print(f"[bold]Task pane[/bold]: {sessions.pane_id}")
    else:
        console.print("[dim]No task sessions.[/dim]")
    return 0
