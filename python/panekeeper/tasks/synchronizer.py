"""
Task status synchronizer

Turns one task-list snapshot into session state, a completion log record and
a refresh signal for the task progress pane. Runs once per (debounced) hook
invocation and always works on full snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from ..config import PaneKeeperConfig
from ..errors import LockTimeoutError, MultiplexerCommandError, NoMultiplexerError
from ..logging_config import setup_logger
from ..panes import PaneLifecycleManager, SpawnRequest, TaskMonitorCommand
from ..signals import SignalChannel
from .completion_log import CompletionLog
from .parser import COMPLETED, FAILED, IN_PROGRESS, Task, calculate_progress_state, parse_todos
from .sessions import Session, SessionStore
from .time_tracker import TimeTracker, now_ms

logger = setup_logger("panekeeper.tasks")

TASK_PANE_KEY = "task-progress"
TASKS_DIRNAME = "tasks"
LOGS_DIRNAME = "logs"

OUTCOME_HIDDEN = "hidden"
OUTCOME_UPDATED = "updated"


@dataclass
class TaskUpdate:
    """One task-list snapshot from a hook invocation."""

    correlation_key: str
    payload: Any = field(default_factory=dict)
    tool_use_id: Optional[str] = None
    agent_type: Optional[str] = None


@dataclass
class SyncResult:
    outcome: str
    session: Optional[Session] = None
    spawned_pane: Optional[str] = None
    logged: bool = False
    signal: Optional[str] = None


def apply_timing(tasks: list[Task], tracker: TimeTracker) -> None:
    """Fill timing fields from the tracker and advance it for this snapshot.

    Timestamps are set once (first seen running / first seen finished), so an
    unchanged snapshot produces unchanged tasks.
    """
    present = {task.id for task in tasks}
    for task in tasks:
        if task.status == IN_PROGRESS:
            tracker.start_task(task.id)
        elif task.status in (COMPLETED, FAILED):
            if tracker.is_tracked(task.id):
                tracker.stop_task(task.id)
            else:
                # Never seen running: finished instantly as far as we know.
                tracker.start_task(task.id)
                tracker.stop_task(task.id)
        elif tracker.is_running(task.id):
            tracker.stop_task(task.id)  # back to pending: pause

        if tracker.is_tracked(task.id):
            task.started_at = tracker.started_at(task.id)
            task.completed_at = tracker.stopped_at(task.id) if task.is_terminal else None
            # Closed segments only; the monitor adds the live segment from startedAt.
            task.elapsed_ms = tracker.accumulated(task.id)
    for task_id in tracker.task_ids():
        if task_id not in present:
            tracker.forget(task_id)


class TaskSynchronizer:
    def __init__(
        self,
        config: PaneKeeperConfig,
        sessions: SessionStore,
        completion_log: CompletionLog,
        panes: PaneLifecycleManager,
        *,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config
        self.sessions = sessions
        self.completion_log = completion_log
        self.panes = panes
        self.clock = clock

    @classmethod
    def create(cls, config: PaneKeeperConfig, home: Path, **kwargs) -> "TaskSynchronizer":
        """Wire stores and the task pane manager under ``home``.

        Extra keyword arguments go to :meth:`PaneLifecycleManager.from_config`.
        """
        tasks_root = Path(home) / TASKS_DIRNAME
        sessions = SessionStore(tasks_root)
        panes = PaneLifecycleManager.from_config(
            config,
            Path(home),
            monitor=TaskMonitorCommand(config.task_monitor, sessions.path),
            **kwargs,
        )
        return cls(config, sessions, CompletionLog(tasks_root / LOGS_DIRNAME), panes)

    # ------------------------------------------------------------------ #
    # Pane plumbing                                                        #
    # ------------------------------------------------------------------ #

    def signal_channel(self) -> SignalChannel:
        if self.sessions.signal_file:
            return SignalChannel(self.sessions.signal_file)
        return SignalChannel(self.panes.registry.signal_path(TASK_PANE_KEY))

    def is_pane_visible(self) -> bool:
        if not self.sessions.pane_id:
            return False
        adapter = self.panes.find_adapter()
        if adapter is None:
            return False
        return adapter.get_pane_info(self.sessions.pane_id) is not None

    def _spawn_pane(self, session: Session) -> Optional[str]:
        request = SpawnRequest(
            task_id=TASK_PANE_KEY,
            correlation_key=TASK_PANE_KEY,
            agent_type=session.agent_type,
            description="Task progress",
            direction=self.config.task_direction,
            percent=self.config.task_percent,
            auto_close_timeout=self.config.auto_close_timeout,
            label="Tasks",
        )
        try:
            entry = self.panes.get_or_create_pane(request)
        except NoMultiplexerError:
            logger.info("No terminal multiplexer; task progress pane not shown")
            return None
        except (MultiplexerCommandError, LockTimeoutError) as e:
            logger.warning(f"Could not open task progress pane: {e}")
            return None
        self.sessions.set_pane_info(entry.pane_id, entry.signal_file)
        return entry.pane_id

    def hide_pane(self) -> None:
        """Close the task pane (if any) and forget it."""
        self.sessions.load()
        pane_id = self.sessions.pane_id
        if pane_id:
            try:
                self.panes.close_pane(pane_id)
            except NoMultiplexerError:
                logger.debug("No multiplexer to close the task pane with")
        if self.sessions.signal_file:
            SignalChannel(self.sessions.signal_file).clear()
        self.sessions.set_pane_info(None, None)
        self.sessions.save()

    # ------------------------------------------------------------------ #
    # Pipeline                                                             #
    # ------------------------------------------------------------------ #

    def process(self, update: TaskUpdate) -> SyncResult:
        self.sessions.load()
        parsed = parse_todos(update.payload)

        previous = self.sessions.get_session(update.correlation_key)
        tracker = TimeTracker.from_dict(previous.timing if previous else None, clock=self.clock)
        apply_timing(parsed.tasks, tracker)
        progress = calculate_progress_state(parsed.tasks)

        if not parsed.tasks and self.config.auto_hide_empty:
            self.sessions.remove_session(update.correlation_key)
            self.sessions.save()
            channel = self.signal_channel()
            channel.signal_hide()
            logger.info(f"Empty task list for {update.correlation_key!r}; pane hidden")
            return SyncResult(OUTCOME_HIDDEN, signal="hide")

        session = self.sessions.upsert_session(
            update.correlation_key,
            tasks=parsed.tasks,
            progress=progress,
            current_task=parsed.current_task,
            agent_type=update.agent_type,
            tool_use_id=update.tool_use_id,
        )
        session.timing = tracker.to_dict()
        if not session.all_terminal:
            session.summary_logged = False

        spawned = None
        if parsed.tasks and self.config.auto_spawn and not self.is_pane_visible():
            spawned = self._spawn_pane(session)

        self.sessions.save()

        logged = False
        if session.all_terminal and self.config.task_log_persistence and not session.summary_logged:
            self.completion_log.log_session_summary(session)
            self.completion_log.prune(self.config.log_retention_days)
            session.summary_logged = True
            self.sessions.save()
            logged = True

        token = self.signal_channel().signal_update(self.clock())
        logger.debug(
            f"Session {session.session_id}: {progress.completed}/{progress.total} "
            f"({progress.percentage}%)"
        )
        return SyncResult(OUTCOME_UPDATED, session=session, spawned_pane=spawned, logged=logged, signal=token)
