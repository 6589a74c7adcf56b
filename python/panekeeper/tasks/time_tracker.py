"""Elapsed-time bookkeeping for tasks across ingestion cycles.

Each hook run is a fresh process, so the tracker is serialized into the
session and restored on the next update.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _Timing:
    started_at: Optional[int]
    stopped_at: Optional[int] = None
    elapsed: int = 0


class TimeTracker:
    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._tasks: dict[str, _Timing] = {}
        self.session_started_at = clock()

    def start_task(self, task_id: str) -> None:
        """Start timing, or resume a stopped task."""
        timing = self._tasks.get(task_id)
        if timing is None:
            self._tasks[task_id] = _Timing(started_at=self._clock())
        elif timing.stopped_at is not None:
            timing.started_at = self._clock()
            timing.stopped_at = None

    def stop_task(self, task_id: str) -> int:
        timing = self._tasks.get(task_id)
        if timing is None:
            return 0
        if timing.stopped_at is None and timing.started_at is not None:
            timing.stopped_at = self._clock()
            timing.elapsed += timing.stopped_at - timing.started_at
        return timing.elapsed

    def get_elapsed(self, task_id: str) -> int:
        timing = self._tasks.get(task_id)
        if timing is None:
            return 0
        if timing.stopped_at is not None or timing.started_at is None:
            return timing.elapsed
        return timing.elapsed + (self._clock() - timing.started_at)

    def accumulated(self, task_id: str) -> int:
        """Elapsed time of finished segments, excluding a segment still running."""
        timing = self._tasks.get(task_id)
        return timing.elapsed if timing else 0

    def task_ids(self) -> list[str]:
        return list(self._tasks)

    def started_at(self, task_id: str) -> Optional[int]:
        timing = self._tasks.get(task_id)
        return timing.started_at if timing else None

    def stopped_at(self, task_id: str) -> Optional[int]:
        timing = self._tasks.get(task_id)
        return timing.stopped_at if timing else None

    def is_running(self, task_id: str) -> bool:
        timing = self._tasks.get(task_id)
        return bool(timing and timing.stopped_at is None and timing.started_at is not None)

    def is_tracked(self, task_id: str) -> bool:
        return task_id in self._tasks

    def forget(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)

    def get_total_elapsed(self) -> int:
        return sum(self.get_elapsed(task_id) for task_id in self._tasks)

    def get_session_elapsed(self) -> int:
        return self._clock() - self.session_started_at

    def clear(self) -> None:
        self._tasks.clear()
        self.session_started_at = self._clock()

    @staticmethod
    def format(ms: int) -> str:
        """``1h 5m``, ``2m 30s`` or ``45s``."""
        seconds = max(0, int(ms)) // 1000
        minutes, hours = seconds // 60, seconds // 3600
        if hours > 0:
            return f"{hours}h {minutes % 60}m"
        if minutes > 0:
            return f"{minutes}m {seconds % 60}s"
        return f"{seconds}s"

    @staticmethod
    def format_compact(ms: int) -> str:
        seconds = max(0, int(ms)) // 1000
        minutes, hours = seconds // 60, seconds // 3600
        if hours > 0:
            return f"{hours}h{minutes % 60}m"
        if minutes > 0:
            return f"{minutes}m{seconds % 60}s"
        return f"{seconds}s"

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": {
                task_id: {
                    "startedAt": t.started_at,
                    "stoppedAt": t.stopped_at,
                    "elapsed": t.elapsed,
                }
                for task_id, t in self._tasks.items()
            },
            "sessionStartedAt": self.session_started_at,
        }

    @classmethod
    def from_dict(cls, data: Any, clock: Callable[[], int] = now_ms) -> "TimeTracker":
        tracker = cls(clock=clock)
        if not isinstance(data, dict):
            return tracker
        if data.get("sessionStartedAt"):
            tracker.session_started_at = int(data["sessionStartedAt"])
        tasks = data.get("tasks")
        if isinstance(tasks, dict):
            for task_id, raw in tasks.items():
                if not isinstance(raw, dict):
                    continue
                tracker._tasks[str(task_id)] = _Timing(
                    started_at=raw.get("startedAt"),
                    stopped_at=raw.get("stoppedAt"),
                    elapsed=int(raw.get("elapsed") or 0),
                )
        return tracker
