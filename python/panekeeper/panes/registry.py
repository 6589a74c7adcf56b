"""Durable pane registry: one JSON document mapping task ids to panes."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..file_lock import DEFAULT_TIMEOUT_S, FileLock
from ..logging_config import setup_logger
from ..signals import SignalChannel, safe_signal_name

logger = setup_logger("panekeeper.panes.registry")

REGISTRY_FILENAME = "panes.json"
LOCK_FILENAME = "panes.lock"
SIGNAL_DIRNAME = "signals"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PaneEntry:
    """Registry record for one task id."""

    pane_id: str
    signal_file: str
    transcript_dir: str = ""  # correlation key
    multiplexer: str = ""
    agent_type: str = "unknown"
    description: str = ""
    created_at: str = ""
    updated_at: str | None = None
    last_task_id: str | None = None

    @property
    def correlation_key(self) -> str:
        return self.transcript_dir

    @property
    def signal(self) -> SignalChannel:
        return SignalChannel(self.signal_file)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "paneId": self.pane_id,
            "signalFile": self.signal_file,
            "transcriptDir": self.transcript_dir,
            "multiplexer": self.multiplexer,
            "agentType": self.agent_type,
            "description": self.description,
            "createdAt": self.created_at,
        }
        if self.updated_at:
            data["updatedAt"] = self.updated_at
        if self.last_task_id:
            data["lastTaskId"] = self.last_task_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaneEntry":
        return cls(
            pane_id=str(data.get("paneId") or ""),
            signal_file=str(data.get("signalFile") or ""),
            transcript_dir=str(data.get("transcriptDir") or ""),
            multiplexer=str(data.get("multiplexer") or ""),
            agent_type=str(data.get("agentType") or "unknown"),
            description=str(data.get("description") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=data.get("updatedAt") or None,
            last_task_id=data.get("lastTaskId") or None,
        )


@dataclass
class RegistryState:
    panes: dict[str, PaneEntry] = field(default_factory=dict)
    last_updated: str | None = None

    def entries_for_pane(self, pane_id: str) -> list[str]:
        return [task_id for task_id, entry in self.panes.items() if entry.pane_id == pane_id]

    def entries_for_key(self, correlation_key: str) -> list[tuple[str, PaneEntry]]:
        return [
            (task_id, entry)
            for task_id, entry in self.panes.items()
            if entry.transcript_dir == correlation_key
        ]


class PaneRegistry:
    """File-backed registry rooted at an injected directory.

    Layout::

        <root>/
            panes.json      {panes: {<taskId>: entry}, lastUpdated}
            panes.lock      inter-process lock marker
            signals/        signal files for spawned monitors
    """

    def __init__(self, root: Path, *, lock_timeout: float = DEFAULT_TIMEOUT_S):
        self.root = Path(root)
        self.path = self.root / REGISTRY_FILENAME
        self.lock_path = self.root / LOCK_FILENAME
        self.signal_dir = self.root / SIGNAL_DIRNAME
        self.lock_timeout = lock_timeout

    def lock(self) -> FileLock:
        return FileLock(self.lock_path, timeout=self.lock_timeout)

    def signal_path(self, name: str) -> Path:
        return self.signal_dir / f"signal-{safe_signal_name(name)}"

    def load(self) -> RegistryState:
        """Missing or corrupt documents are read as an empty registry."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return RegistryState()
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable registry {self.path}: {e}")
            return RegistryState()

        if not isinstance(raw, dict):
            return RegistryState()
        panes_raw = raw.get("panes")
        panes: dict[str, PaneEntry] = {}
        if isinstance(panes_raw, dict):
            for task_id, data in panes_raw.items():
                if isinstance(task_id, str) and isinstance(data, dict) and data.get("paneId"):
                    panes[task_id] = PaneEntry.from_dict(data)
        last_updated = raw.get("lastUpdated")
        return RegistryState(panes=panes, last_updated=last_updated if isinstance(last_updated, str) else None)

    def save(self, state: RegistryState) -> None:
        """Rewrite the whole document (no partial patching)."""
        state.last_updated = utc_now_iso()
        payload = {
            "panes": {task_id: entry.to_dict() for task_id, entry in state.panes.items()},
            "lastUpdated": state.last_updated,
        }
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(self.path)
