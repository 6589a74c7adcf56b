"""Task-list parsing, session state and the task progress pane."""

from .completion_log import CompletionLog, build_summary
from .debounce import Debouncer
from .parser import (
    COMPLETED,
    FAILED,
    IN_PROGRESS,
    PENDING,
    ParseResult,
    ProgressState,
    Task,
    TaskDiff,
    calculate_progress,
    calculate_progress_state,
    diff_tasks,
    generate_task_id,
    group_by_status,
    normalize_status,
    parse_todos,
)
from .sessions import Session, SessionStore, derive_session_id
from .synchronizer import SyncResult, TaskSynchronizer, TaskUpdate
from .time_tracker import TimeTracker

__all__ = [
    "COMPLETED",
    "FAILED",
    "IN_PROGRESS",
    "PENDING",
    "CompletionLog",
    "Debouncer",
    "ParseResult",
    "ProgressState",
    "Session",
    "SessionStore",
    "SyncResult",
    "Task",
    "TaskDiff",
    "TaskSynchronizer",
    "TaskUpdate",
    "TimeTracker",
    "build_summary",
    "calculate_progress",
    "calculate_progress_state",
    "derive_session_id",
    "diff_tasks",
    "generate_task_id",
    "group_by_status",
    "normalize_status",
    "parse_todos",
]
