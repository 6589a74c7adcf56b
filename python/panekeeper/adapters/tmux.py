"""tmux backend."""

from __future__ import annotations

import shlex
import subprocess
from typing import Sequence

from .base import (
    STACKED,
    MultiplexerAdapter,
    PaneInfo,
    clamp_percent,
    command_argv,
    logger,
    normalize_direction,
)

_LIST_FORMAT = "#{pane_id}:#{pane_width}:#{pane_height}:#{pane_current_command}"


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def _parse_pane_line(line: str) -> PaneInfo | None:
    parts = line.strip().split(":", 3)
    if len(parts) != 4 or not parts[0]:
        return None
    pane_id, width, height, current_command = parts
    return PaneInfo(
        pane_id=pane_id,
        width=_parse_int(width),
        height=_parse_int(height),
        current_command=current_command or None,
    )


class TmuxAdapter(MultiplexerAdapter):
    """Adapter for tmux. Pane handles are tmux pane ids such as ``%12``."""

    name = "tmux"
    executable = "tmux"
    env_markers = ("TMUX",)

    def split_pane(
        self,
        direction: str = "right",
        percent: int = 40,
        command: str | Sequence[str] | None = None,
        cwd: str | None = None,
        name: str | None = None,
    ) -> str:
        # -h = side by side, -v = stacked; -d keeps focus on the agent's pane.
        flag = "-v" if normalize_direction(direction) == STACKED else "-h"
        args = [
            "split-window",
            flag,
            "-p",
            str(clamp_percent(percent)),
            "-d",
            "-P",
            "-F",
            "#{pane_id}",
        ]
        if cwd:
            args.extend(["-c", cwd])
        argv = command_argv(command)
        if argv:
            # tmux hands a single string to the shell.
            args.append(argv[0] if len(argv) == 1 else shlex.join(argv))

        proc = self._run_checked("split pane", args)
        pane_id = (proc.stdout or "").strip()
        if name and pane_id:
            self._run_quiet("set pane title", ["select-pane", "-t", pane_id, "-T", name])
        return pane_id

    def close_pane(self, pane_id: str) -> None:
        # The pane may already be gone; that is not an error here.
        self._run_quiet("closePane", ["kill-pane", "-t", pane_id])

    def send_keys(self, pane_id: str, text: str) -> None:
        # -l sends the text literally instead of interpreting key names.
        self._run_checked("send keys", ["send-keys", "-t", pane_id, "-l", text])

    def list_panes(self) -> list[PaneInfo]:
        try:
            proc = self._run(["list-panes", "-a", "-F", _LIST_FORMAT])
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"[tmux] list-panes failed: {e}")
            return []
        if proc.returncode != 0:
            return []
        panes = []
        for line in (proc.stdout or "").splitlines():
            info = _parse_pane_line(line)
            if info is not None:
                panes.append(info)
        return panes

    def get_pane_info(self, pane_id: str) -> PaneInfo | None:
        for info in self.list_panes():
            if info.pane_id == pane_id:
                return info
        return None
