"""Zellij backend.

The Zellij CLI cannot address panes by id: ``run`` prints nothing useful and
``action close-pane`` / ``action write-chars`` operate on whichever pane has
focus. Handles returned here are synthetic and only good for bookkeeping.
"""

from __future__ import annotations

import time
from typing import Sequence

from .base import (
    STACKED,
    MultiplexerAdapter,
    PaneInfo,
    command_argv,
    logger,
    normalize_direction,
)


class ZellijAdapter(MultiplexerAdapter):
    name = "zellij"
    executable = "zellij"
    env_markers = ("ZELLIJ_SESSION_NAME", "ZELLIJ")

    supports_pane_info = False
    addressable = False

    def split_pane(
        self,
        direction: str = "right",
        percent: int = 40,
        command: str | Sequence[str] | None = None,
        cwd: str | None = None,
        name: str | None = None,
    ) -> str:
        # Zellij has no size flag for run; percent is accepted for interface parity.
        flag = "down" if normalize_direction(direction) == STACKED else "right"
        args = ["run", "--direction", flag, "--close-on-exit"]
        if cwd:
            args.extend(["--cwd", cwd])
        if name:
            args.extend(["--name", name])
        args.append("--")
        argv = command_argv(command)
        args.extend(argv or [self.environ.get("SHELL") or "/bin/sh"])

        self._run_checked("split pane", args)
        return f"zellij-{int(time.time() * 1000)}"

    def close_pane(self, pane_id: str) -> None:
        # Closes the focused pane, not necessarily pane_id.
        logger.debug(f"[zellij] close-pane targets the focused pane (requested {pane_id})")
        self._run_quiet("closePane", ["action", "close-pane"])

    def send_keys(self, pane_id: str, text: str) -> None:
        # Writes to the focused pane, not necessarily pane_id.
        self._run_checked("send text", ["action", "write-chars", text])

    def get_pane_info(self, pane_id: str) -> PaneInfo | None:
        return None
