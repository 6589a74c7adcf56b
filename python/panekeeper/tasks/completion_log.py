"""Append-only, per-day log of finished task sessions (``YYYY-MM-DD.jsonl``)."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from ..logging_config import setup_logger
from .parser import TERMINAL_STATUSES
from .sessions import Session

logger = setup_logger("panekeeper.tasks.log")


def build_summary(session: Session, *, now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    progress = session.progress
    return {
        "timestamp": now.isoformat(),
        "sessionId": session.session_id,
        "correlationKey": session.correlation_key,
        "agentType": session.agent_type,
        "startedAt": session.started_at,
        "total": progress.total,
        "completed": progress.completed,
        "failed": progress.failed,
        "percentage": progress.percentage,
        "totalElapsedMs": progress.total_elapsed_ms,
        "tasks": [
            {"id": t.id, "content": t.content, "status": t.status, "elapsedMs": t.elapsed_ms}
            for t in session.tasks
            if t.status in TERMINAL_STATUSES
        ],
    }


class CompletionLog:
    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir)

    def path_for(self, day: date) -> Path:
        return self.log_dir / f"{day.isoformat()}.jsonl"

    def append(self, record: dict[str, Any], *, day: Optional[date] = None) -> Path:
        """Append one JSON record as a single line. Existing lines are never rewritten."""
        path = self.path_for(day or datetime.now().date())
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False) + "\n")
        return path

    def log_session_summary(self, session: Session, *, day: Optional[date] = None) -> Path:
        path = self.append(build_summary(session), day=day)
        logger.info(f"Logged completion of session {session.session_id} to {path.name}")
        return path

    def read(self, day: date) -> list[dict[str, Any]]:
        path = self.path_for(day)
        if not path.exists():
            return []
        records = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.debug(f"Skipping malformed line in {path.name}")
        return records

    def prune(self, retention_days: int, *, today: Optional[date] = None) -> int:
        """Delete day files older than ``retention_days``. Non-positive keeps everything."""
        if retention_days <= 0 or not self.log_dir.exists():
            return 0
        cutoff = (today or datetime.now().date()) - timedelta(days=retention_days)
        removed = 0
        for path in self.log_dir.glob("*.jsonl"):
            try:
                day = date.fromisoformat(path.stem)
            except ValueError:
                continue
            if day < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        return removed
