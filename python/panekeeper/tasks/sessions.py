"""Multi-session bookkeeping for the task progress pane.

All sessions share one pane; the monitor renders them and lets the user page
between them by index. State lives in ``<root>/tasks/state.json``::

    {sessions: [...], activeSessionIndex, paneId, signalFile, lastUpdated}
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import Any, Optional

from ..logging_config import setup_logger
from .parser import ProgressState, Task
from .time_tracker import now_ms

logger = setup_logger("panekeeper.tasks.sessions")

STATE_FILENAME = "state.json"
SESSION_ID_LEN = 12


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def derive_session_id(correlation_key: str | None) -> str:
    """Short, stable id for a correlation key.

    Transcript paths use their file stem, ``toolu_01AbC``-style ids their last
    ``_`` segment; both are truncated to 12 characters.
    """
    key = (correlation_key or "").strip()
    if not key:
        return f"session-{now_ms()}"
    if "/" in key or "\\" in key:
        stem = PurePath(key).stem
        if stem:
            return stem[:SESSION_ID_LEN]
    if "_" in key:
        last = key.split("_")[-1]
        if last:
            return last[:SESSION_ID_LEN]
    return key[:SESSION_ID_LEN]


def _default_ui_state() -> dict[str, Any]:
    return {
        "scrollPosition": 0,
        "cursorPosition": 0,
        "expandedTasks": [],
        "collapsedSections": [],
        "searchQuery": None,
        "searchMatches": [],
    }


@dataclass
class Session:
    session_id: str
    correlation_key: str
    tool_use_id: Optional[str] = None
    agent_type: str = "unknown"
    started_at: str = field(default_factory=utc_now_iso)
    updated_at: Optional[str] = None
    tasks: list[Task] = field(default_factory=list)
    progress: ProgressState = field(default_factory=ProgressState)
    current_task: Optional[str] = None
    timing: dict[str, Any] = field(default_factory=dict)
    summary_logged: bool = False
    ui_state: dict[str, Any] = field(default_factory=_default_ui_state)

    @property
    def all_terminal(self) -> bool:
        return bool(self.tasks) and all(task.is_terminal for task in self.tasks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "correlationKey": self.correlation_key,
            "toolUseId": self.tool_use_id,
            "agentType": self.agent_type,
            "startedAt": self.started_at,
            "updatedAt": self.updated_at,
            "tasks": [task.to_dict() for task in self.tasks],
            "progress": self.progress.to_dict(),
            "currentTask": self.current_task,
            "timing": self.timing,
            "summaryLogged": self.summary_logged,
            "uiState": self.ui_state,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        ui_state = _default_ui_state()
        if isinstance(data.get("uiState"), dict):
            ui_state.update(data["uiState"])
        return cls(
            session_id=str(data.get("sessionId") or ""),
            correlation_key=str(data.get("correlationKey") or data.get("toolUseId") or ""),
            tool_use_id=data.get("toolUseId"),
            agent_type=str(data.get("agentType") or "unknown"),
            started_at=str(data.get("startedAt") or utc_now_iso()),
            updated_at=data.get("updatedAt"),
            tasks=[Task.from_dict(t) for t in data.get("tasks") or [] if isinstance(t, dict)],
            progress=ProgressState.from_dict(data.get("progress") or {}),
            current_task=data.get("currentTask"),
            timing=data.get("timing") if isinstance(data.get("timing"), dict) else {},
            summary_logged=bool(data.get("summaryLogged", False)),
            ui_state=ui_state,
        )


class SessionStore:
    """Sessions for the task pane plus the pane they are rendered in."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.path = self.root / STATE_FILENAME
        self.sessions: dict[str, Session] = {}
        self.active_session_index = 0
        self.pane_id: Optional[str] = None
        self.signal_file: Optional[str] = None
        self.last_updated: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Persistence                                                          #
    # ------------------------------------------------------------------ #

    def load(self) -> "SessionStore":
        """Read state from disk; a missing or corrupt file leaves the store empty."""
        self.clear()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return self
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session state {self.path}: {e}")
            return self

        if not isinstance(data, dict):
            return self
        for raw in data.get("sessions") or []:
            if isinstance(raw, dict) and raw.get("sessionId"):
                session = Session.from_dict(raw)
                self.sessions[session.session_id] = session
        if isinstance(data.get("activeSessionIndex"), int):
            self.active_session_index = data["activeSessionIndex"]
        self.pane_id = data.get("paneId") or None
        self.signal_file = data.get("signalFile") or None
        self.last_updated = data.get("lastUpdated")
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions": [session.to_dict() for session in self.sessions.values()],
            "activeSessionIndex": self.active_session_index,
            "paneId": self.pane_id,
            "signalFile": self.signal_file,
            "lastUpdated": self.last_updated,
        }

    def save(self) -> None:
        self.last_updated = utc_now_iso()
        self.root.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        tmp.write_text(json.dumps(self.to_dict(), indent=2), encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self.path)

    # ------------------------------------------------------------------ #
    # Sessions                                                             #
    # ------------------------------------------------------------------ #

    def upsert_session(
        self,
        correlation_key: str,
        *,
        tasks: Optional[list[Task]] = None,
        progress: Optional[ProgressState] = None,
        current_task: Optional[str] = None,
        agent_type: Optional[str] = None,
        tool_use_id: Optional[str] = None,
    ) -> Session:
        session_id = derive_session_id(correlation_key)
        session = self.sessions.get(session_id)
        if session is None:
            session = Session(
                session_id=session_id,
                correlation_key=correlation_key,
                tool_use_id=tool_use_id,
                agent_type=agent_type or "unknown",
            )
            self.sessions[session_id] = session

        if tasks is not None:
            session.tasks = tasks
            session.current_task = current_task
        if progress is not None:
            session.progress = progress
        if agent_type is not None:
            session.agent_type = agent_type
        if tool_use_id:
            session.tool_use_id = tool_use_id
        session.updated_at = utc_now_iso()
        return session

    def get_session(self, correlation_key: str) -> Optional[Session]:
        return self.sessions.get(derive_session_id(correlation_key))

    def get_session_by_id(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    def all_sessions(self) -> list[Session]:
        return list(self.sessions.values())

    def remove_session(self, correlation_key: str) -> bool:
        removed = self.sessions.pop(derive_session_id(correlation_key), None) is not None
        self._clamp_active_index()
        return removed

    def cleanup_empty(self) -> int:
        empty = [sid for sid, session in self.sessions.items() if not session.tasks]
        for sid in empty:
            del self.sessions[sid]
        self._clamp_active_index()
        return len(empty)

    def has_tasks(self) -> bool:
        return any(session.tasks for session in self.sessions.values())

    def total_task_count(self) -> int:
        return sum(len(session.tasks) for session in self.sessions.values())

    # ------------------------------------------------------------------ #
    # Navigation                                                           #
    # ------------------------------------------------------------------ #

    def _clamp_active_index(self) -> None:
        count = len(self.sessions)
        if count == 0:
            self.active_session_index = 0
        elif self.active_session_index >= count:
            self.active_session_index = count - 1

    def active_session(self) -> Optional[Session]:
        sessions = self.all_sessions()
        if not sessions:
            return None
        return sessions[max(0, min(self.active_session_index, len(sessions) - 1))]

    def set_active_index(self, index: int) -> None:
        if 0 <= index < len(self.sessions):
            self.active_session_index = index

    def next_session(self) -> Optional[Session]:
        count = len(self.sessions)
        if count > 1:
            self.active_session_index = (self.active_session_index + 1) % count
        return self.active_session()

    def prev_session(self) -> Optional[Session]:
        count = len(self.sessions)
        if count > 1:
            self.active_session_index = (self.active_session_index - 1) % count
        return self.active_session()

    # ------------------------------------------------------------------ #
    # Pane                                                                 #
    # ------------------------------------------------------------------ #

    def set_pane_info(self, pane_id: Optional[str], signal_file: Optional[str]) -> None:
        self.pane_id = pane_id
        self.signal_file = signal_file

    def clear(self) -> None:
        self.sessions.clear()
        self.active_session_index = 0
        self.pane_id = None
        self.signal_file = None
        self.last_updated = None
