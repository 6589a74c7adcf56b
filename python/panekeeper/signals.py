"""Single-slot signal files polled by the monitor running inside a pane.

Only the latest write matters: there is no queue, no history and no
acknowledgement. Writers replace the file atomically so the poller never sees
a half-written token.
"""

from __future__ import annotations

import os
import re
import time
from pathlib import Path

from .logging_config import setup_logger

logger = setup_logger("panekeeper.signals")

TOKEN_HIDE = "hide"
TOKEN_DONE = "done"
UPDATE_PREFIX = "update:"
ERROR_PREFIX = "error:"

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def safe_signal_name(raw: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", raw).strip("._") or "signal"


class SignalChannel:
    """Last-write-wins mailbox backed by one small file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"SignalChannel({str(self.path)!r})"

    def write(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(f"{self.path.name}.{os.getpid()}.tmp")
        tmp.write_text(token, encoding="utf-8")
        os.chmod(tmp, 0o600)
        tmp.replace(self.path)

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def signal_update(self, timestamp_ms: int | None = None) -> str:
        token = f"{UPDATE_PREFIX}{timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)}"
        self.write(token)
        return token

    def signal_hide(self) -> None:
        self.write(TOKEN_HIDE)

    def signal_done(self) -> None:
        self.write(TOKEN_DONE)

    def signal_error(self, message: str) -> None:
        # Keep the token on one line; the monitor reads it as a single record.
        self.write(f"{ERROR_PREFIX}{' '.join((message or 'Unknown error').split())}")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.debug(f"Signal file {self.path} already removed")
