"""Hook input record.

stdin JSON format (either spelling of each field is accepted)::

    {
        "tool_name": "Task",            # or "tool"
        "tool_use_id": "toolu_...",
        "tool_input": {...},            # or "parameters"
        "transcript_path": "...",       # or "transcriptPath"
        "error": "..." | {"message": "..."},
        "tool_result": {"is_error": false}
    }
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Optional, TextIO

from ..logging_config import setup_logger

logger = setup_logger("panekeeper.hooks")

TASK_TOOL = "Task"
TODO_TOOL = "TodoWrite"
UNKNOWN_ERROR = "Unknown error"


def _error_message(data: dict[str, Any]) -> Optional[str]:
    error = data.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or UNKNOWN_ERROR)
    if isinstance(error, str) and error.strip():
        return error.strip()
    if error:
        return UNKNOWN_ERROR
    result = data.get("tool_result")
    if isinstance(result, dict) and result.get("is_error"):
        return UNKNOWN_ERROR
    return None


@dataclass
class HookInput:
    tool_name: str = ""
    tool_use_id: Optional[str] = None
    tool_input: dict[str, Any] = field(default_factory=dict)
    transcript_path: str = ""
    error: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "HookInput":
        if not isinstance(data, dict):
            data = {}
        params = data.get("tool_input") or data.get("parameters") or {}
        tool_use_id = data.get("tool_use_id")
        return cls(
            tool_name=str(data.get("tool_name") or data.get("tool") or ""),
            tool_use_id=str(tool_use_id) if tool_use_id not in (None, "") else None,
            tool_input=params if isinstance(params, dict) else {},
            transcript_path=str(data.get("transcript_path") or data.get("transcriptPath") or ""),
            error=_error_message(data),
            raw=data,
        )

    @classmethod
    def parse(cls, text: str) -> "HookInput":
        """Blank or malformed input yields an empty record."""
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            logger.warning(f"Hook input is not valid JSON: {e}")
            data = {}
        return cls.from_dict(data)

    @classmethod
    def read(cls, stream: TextIO | None = None) -> "HookInput":
        return cls.parse((stream or sys.stdin).read())

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def correlation_key(self) -> str:
        """Key for task-list sessions: the conversation transcript, else the tool call."""
        return self.transcript_path or self.tool_use_id or ""
