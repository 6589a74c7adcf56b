"""
Agent pane completion hook

Runs after a Task tool call and tells the subagent's monitor whether it
finished or failed. The pane itself stays open; the monitor decides when to
close (auto-close timeout) or waits for the user.
"""

from __future__ import annotations

from pathlib import Path

from ..config import PaneKeeperConfig
from ..logging_config import setup_logger
from ..panes import PaneLifecycleManager
from .input import TASK_TOOL, HookInput
from .runner import hook_main

logger = setup_logger("panekeeper.hooks.complete")


def signal_completion(
    hook: HookInput,
    config: PaneKeeperConfig,
    home: Path,
    *,
    manager: PaneLifecycleManager | None = None,
) -> bool:
    if hook.tool_name != TASK_TOOL or not hook.tool_use_id:
        return False

    manager = manager or PaneLifecycleManager.from_config(config, home)
    found = manager.complete_task(hook.tool_use_id, hook.error)
    if not found:
        logger.debug(f"No pane tracked for task {hook.tool_use_id}")
    return found


def main() -> None:
    hook_main("pane-complete", signal_completion)


if __name__ == "__main__":
    main()
