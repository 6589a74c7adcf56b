"""
Agent pane spawner hook

Runs before a Task tool call and opens (or reuses) the progress pane for the
conversation the subagent belongs to.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import PaneKeeperConfig
from ..errors import NoMultiplexerError
from ..logging_config import setup_logger
from ..panes import PaneEntry, PaneLifecycleManager, SpawnRequest
from .input import TASK_TOOL, HookInput
from .runner import hook_main

logger = setup_logger("panekeeper.hooks.spawn")


def build_request(hook: HookInput, config: PaneKeeperConfig) -> SpawnRequest:
    params = hook.tool_input
    return SpawnRequest.for_transcript(
        hook.transcript_path,
        task_id=hook.tool_use_id,
        agent_type=str(params.get("subagent_type") or "unknown"),
        description=str(params.get("description") or ""),
        direction=config.direction,
        percent=config.percent,
        auto_close_timeout=config.auto_close_timeout,
    )


def spawn_agent_pane(
    hook: HookInput,
    config: PaneKeeperConfig,
    home: Path,
    *,
    manager: PaneLifecycleManager | None = None,
) -> Optional[PaneEntry]:
    if hook.tool_name != TASK_TOOL:
        return None

    manager = manager or PaneLifecycleManager.from_config(config, home)
    try:
        return manager.get_or_create_pane(build_request(hook, config))
    except NoMultiplexerError:
        logger.info("No terminal multiplexer detected; agent pane skipped")
        return None


def main() -> None:
    hook_main("pane-spawn", spawn_agent_pane)


if __name__ == "__main__":
    main()
