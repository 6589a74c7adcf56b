"""Pane registry and lifecycle management."""

from .manager import PaneLifecycleManager, SpawnRequest
from .monitor import AgentMonitorCommand, MonitorCommand, TaskMonitorCommand
from .registry import PaneEntry, PaneRegistry, RegistryState

__all__ = [
    "AgentMonitorCommand",
    "MonitorCommand",
    "PaneEntry",
    "PaneLifecycleManager",
    "PaneRegistry",
    "RegistryState",
    "SpawnRequest",
    "TaskMonitorCommand",
]
