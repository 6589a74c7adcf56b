"""panekeeper command line interface."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import __version__

app = typer.Typer(
    name="panekeeper",
    help="Progress panes for coding agents in tmux, WezTerm and Zellij.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Show or change panekeeper settings.", no_args_is_help=True)
hook_app = typer.Typer(help="Agent hook entry points (read JSON on stdin).", no_args_is_help=True)
app.add_typer(config_app, name="config")
app.add_typer(hook_app, name="hook")

console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"panekeeper v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """panekeeper entrypoint."""
    del version


@app.command()
def status(
    home: Optional[Path] = typer.Option(None, "--home", help="State directory (default: PANEKEEPER_HOME or ~/.panekeeper)"),
    no_verify: bool = typer.Option(False, "--no-verify", help="Do not ask the multiplexer which panes are alive."),
) -> None:
    """Show tracked agent panes and task sessions."""
    from .commands.status import status_command

    raise typer.Exit(code=status_command(home=home, verify=not no_verify))


@app.command()
def cleanup(
    home: Optional[Path] = typer.Option(None, "--home", help="State directory"),
) -> None:
    """Forget panes that no longer exist."""
    from .commands.panes import cleanup_command

    raise typer.Exit(code=cleanup_command(home=home))


@app.command()
def close(
    pane_id: str = typer.Argument(..., help="Pane handle as shown by `panekeeper status`"),
    home: Optional[Path] = typer.Option(None, "--home", help="State directory"),
) -> None:
    """Close a pane and drop its registry entries."""
    from .commands.panes import close_command

    raise typer.Exit(code=close_command(pane_id, home=home))


@app.command()
def detect() -> None:
    """Show which terminal multiplexer would be used."""
    from .commands.panes import detect_command

    raise typer.Exit(code=detect_command())


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    from .commands.config import config_show_command

    raise typer.Exit(code=config_show_command())


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. percent"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Persist one setting to config.yaml."""
    from .commands.config import config_set_command

    raise typer.Exit(code=config_set_command(key, value))


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite without asking."),
) -> None:
    """Restore the default configuration."""
    from .commands.config import config_reset_command

    raise typer.Exit(code=config_reset_command(force=force))


@hook_app.command("pane-spawn")
def hook_pane_spawn() -> None:
    """PreToolUse(Task): open or reuse the agent progress pane."""
    from .hooks.pane_spawner import spawn_agent_pane
    from .hooks.runner import run_hook

    raise typer.Exit(code=run_hook("pane-spawn", spawn_agent_pane))


@hook_app.command("pane-complete")
def hook_pane_complete() -> None:
    """PostToolUse(Task): signal done/error to the agent progress pane."""
    from .hooks.pane_completion import signal_completion
    from .hooks.runner import run_hook

    raise typer.Exit(code=run_hook("pane-complete", signal_completion))


@hook_app.command("task-update")
def hook_task_update() -> None:
    """PreToolUse(TodoWrite): sync the task list and refresh the task pane."""
    from .hooks.runner import run_hook
    from .hooks.task_update import sync_task_list

    raise typer.Exit(code=run_hook("task-update", sync_task_list))


if __name__ == "__main__":
    app()
