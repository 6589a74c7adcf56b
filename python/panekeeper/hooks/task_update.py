"""
Task list update hook

Runs before a TodoWrite tool call. Snapshots arriving within the debounce
window collapse into one synchronizer run with the latest list; the hook waits
for that run before the process exits.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import PaneKeeperConfig
from ..logging_config import setup_logger
from ..tasks import Debouncer, SyncResult, TaskSynchronizer, TaskUpdate
from ..tasks.time_tracker import now_ms
from .input import TODO_TOOL, HookInput
from .runner import hook_main

logger = setup_logger("panekeeper.hooks.tasks")


def build_update(hook: HookInput) -> TaskUpdate:
    key = hook.correlation_key or f"todo-{now_ms()}"
    agent_type = hook.raw.get("agent_type") or hook.raw.get("subagent_type")
    return TaskUpdate(
        correlation_key=key,
        payload=hook.tool_input,
        tool_use_id=hook.tool_use_id,
        agent_type=str(agent_type) if agent_type else None,
    )


def sync_task_list(
    hook: HookInput,
    config: PaneKeeperConfig,
    home: Path,
    *,
    synchronizer: TaskSynchronizer | None = None,
) -> Optional[SyncResult]:
    if hook.tool_name != TODO_TOOL:
        return None

    synchronizer = synchronizer or TaskSynchronizer.create(config, home)
    results: list[SyncResult] = []
    debouncer: Debouncer[TaskUpdate] = Debouncer(
        lambda update: results.append(synchronizer.process(update)),
        delay_s=max(0, config.debounce_ms) / 1000.0,
    )
    debouncer.submit(build_update(hook))
    debouncer.wait()
    return results[-1] if results else None


def main() -> None:
    hook_main("task-update", sync_task_list)


if __name__ == "__main__":
    main()
