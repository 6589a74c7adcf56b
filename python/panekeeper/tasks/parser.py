"""Parse task-list payloads (TodoWrite tool input) and compute progress.

Progress is ``round(completed / total * 100)``. Failed tasks count toward the
total but never toward completed, so a failed task caps the percentage.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"
FAILED = "failed"

TERMINAL_STATUSES = frozenset({COMPLETED, FAILED})

_STATUS_SYNONYMS = {
    "completed": COMPLETED,
    "complete": COMPLETED,
    "done": COMPLETED,
    "finished": COMPLETED,
    "in_progress": IN_PROGRESS,
    "inprogress": IN_PROGRESS,
    "in-progress": IN_PROGRESS,
    "active": IN_PROGRESS,
    "running": IN_PROGRESS,
    "failed": FAILED,
    "error": FAILED,
}


def generate_task_id(content: str) -> str:
    """Deterministic 8-char fingerprint so unchanged tasks keep their identity."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()[:8]


def normalize_status(status: Any) -> str:
    return _STATUS_SYNONYMS.get(str(status).strip().lower(), PENDING)


def _round_half_up_percent(part: int, total: int) -> int:
    # Integer arithmetic: floor(part * 100 / total + 0.5) without float error.
    return (200 * part + total) // (2 * total)


@dataclass
class Task:
    id: str
    content: str
    active_form: str
    status: str = PENDING
    started_at: Optional[int] = None  # epoch ms
    completed_at: Optional[int] = None  # epoch ms
    elapsed_ms: int = 0
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "activeForm": self.active_form,
            "status": self.status,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "elapsedMs": self.elapsed_ms,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        content = str(data.get("content") or "")
        return cls(
            id=str(data.get("id") or generate_task_id(content)),
            content=content,
            active_form=str(data.get("activeForm") or content),
            status=normalize_status(data.get("status", PENDING)),
            started_at=data.get("startedAt"),
            completed_at=data.get("completedAt"),
            elapsed_ms=int(data.get("elapsedMs") or 0),
            error=data.get("error"),
        )


@dataclass
class ProgressState:
    completed: int = 0
    in_progress: int = 0
    pending: int = 0
    failed: int = 0
    total: int = 0
    percentage: int = 0
    total_elapsed_ms: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "completed": self.completed,
            "inProgress": self.in_progress,
            "pending": self.pending,
            "failed": self.failed,
            "total": self.total,
            "percentage": self.percentage,
            "totalElapsedMs": self.total_elapsed_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProgressState":
        return cls(
            completed=int(data.get("completed") or 0),
            in_progress=int(data.get("inProgress") or 0),
            pending=int(data.get("pending") or 0),
            failed=int(data.get("failed") or 0),
            total=int(data.get("total") or 0),
            percentage=int(data.get("percentage") or 0),
            total_elapsed_ms=int(data.get("totalElapsedMs") or 0),
        )


@dataclass
class ParseResult:
    tasks: list[Task] = field(default_factory=list)
    progress: ProgressState = field(default_factory=ProgressState)
    current_task: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return bool(self.tasks)


@dataclass
class StatusChange:
    task: Task
    from_status: str
    to_status: str


@dataclass
class TaskDiff:
    added: list[Task] = field(default_factory=list)
    removed: list[Task] = field(default_factory=list)
    status_changed: list[StatusChange] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.status_changed)


def parse_todos(payload: Any) -> ParseResult:
    """Turn ``{"todos": [{"content", "status", "activeForm"}, ...]}`` into tasks."""
    todos = payload.get("todos") if isinstance(payload, dict) else None
    if not isinstance(todos, list):
        return ParseResult()

    tasks = []
    for todo in todos:
        if not isinstance(todo, dict):
            continue
        content = str(todo.get("content") or "").strip()
        if not content:
            continue
        tasks.append(
            Task(
                id=generate_task_id(content),
                content=content,
                active_form=str(todo.get("activeForm") or content),
                status=normalize_status(todo.get("status", PENDING)),
            )
        )

    return ParseResult(
        tasks=tasks,
        progress=calculate_progress_state(tasks),
        current_task=current_task_label(tasks),
    )


def current_task_label(tasks: Iterable[Task]) -> Optional[str]:
    for task in tasks:
        if task.status == IN_PROGRESS:
            return task.content
    return None


def calculate_progress_state(tasks: list[Task]) -> ProgressState:
    total = len(tasks)
    if total == 0:
        return ProgressState()

    counts = {PENDING: 0, IN_PROGRESS: 0, COMPLETED: 0, FAILED: 0}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1

    return ProgressState(
        completed=counts[COMPLETED],
        in_progress=counts[IN_PROGRESS],
        pending=counts[PENDING],
        failed=counts[FAILED],
        total=total,
        percentage=_round_half_up_percent(counts[COMPLETED], total),
        total_elapsed_ms=sum(t.elapsed_ms or 0 for t in tasks),
    )


def calculate_progress(tasks: list[Task]) -> int:
    return calculate_progress_state(tasks).percentage


def diff_tasks(prev: list[Task], next_tasks: list[Task]) -> TaskDiff:
    """Compare two snapshots by fingerprint."""
    prev_map = {t.id: t for t in prev}
    next_ids = {t.id for t in next_tasks}

    diff = TaskDiff(
        added=[t for t in next_tasks if t.id not in prev_map],
        removed=[t for t in prev if t.id not in next_ids],
    )
    for task in next_tasks:
        before = prev_map.get(task.id)
        if before is not None and before.status != task.status:
            diff.status_changed.append(StatusChange(task, before.status, task.status))
    return diff


def group_by_status(tasks: list[Task]) -> dict[str, list[Task]]:
    groups: dict[str, list[Task]] = {COMPLETED: [], IN_PROGRESS: [], FAILED: [], PENDING: []}
    for task in tasks:
        groups.setdefault(task.status, []).append(task)
    return groups
