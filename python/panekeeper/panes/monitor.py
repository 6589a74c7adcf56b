"""Command lines for the monitor processes launched inside spawned panes.

The monitors themselves are external executables; panekeeper only decides
which arguments they receive.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .manager import SpawnRequest

SHORT_TASK_ID_LEN = 12


MonitorCommand = Callable[["SpawnRequest", Path], list[str]]


class AgentMonitorCommand:
    """``<exe> <agentType> <description> <signalFile> <transcriptDir> <shortTaskId> <autoClose>``"""

    def __init__(self, executable: str):
        self.executable = executable

    def __call__(self, request: "SpawnRequest", signal_file: Path) -> list[str]:
        short_task_id = (request.task_id or "")[:SHORT_TASK_ID_LEN] or os.path.basename(str(signal_file))
        return [
            self.executable,
            request.agent_type,
            request.description,
            str(signal_file),
            request.correlation_key,
            short_task_id,
            str(int(request.auto_close_timeout or 0)),
        ]


class TaskMonitorCommand:
    """``<exe> <stateFile> <signalFile> <autoClose>``"""

    def __init__(self, executable: str, state_path: Path):
        self.executable = executable
        self.state_path = state_path

    def __call__(self, request: "SpawnRequest", signal_file: Path) -> list[str]:
        return [
            self.executable,
            str(self.state_path),
            str(signal_file),
            str(int(request.auto_close_timeout or 0)),
        ]
