"""WezTerm backend (``wezterm cli``)."""

from __future__ import annotations

import json
import subprocess
from typing import Any, Sequence

from .base import (
    STACKED,
    MultiplexerAdapter,
    PaneInfo,
    clamp_percent,
    command_argv,
    logger,
    normalize_direction,
)


def _pane_from_json(item: dict[str, Any]) -> PaneInfo | None:
    pane_id = item.get("pane_id")
    if pane_id is None:
        return None
    size = item.get("size") if isinstance(item.get("size"), dict) else {}
    return PaneInfo(
        pane_id=str(pane_id),
        width=size.get("cols"),
        height=size.get("rows"),
        current_command=item.get("title") or None,
        extra={k: v for k, v in item.items() if k in ("window_id", "tab_id", "cwd", "is_active")},
    )


class WeztermAdapter(MultiplexerAdapter):
    """Adapter for WezTerm. Pane handles are the numeric pane ids printed by split-pane."""

    name = "wezterm"
    executable = "wezterm"
    env_markers = ("WEZTERM_PANE",)

    def split_pane(
        self,
        direction: str = "right",
        percent: int = 40,
        command: str | Sequence[str] | None = None,
        cwd: str | None = None,
        name: str | None = None,
    ) -> str:
        flag = "--bottom" if normalize_direction(direction) == STACKED else "--right"
        args = ["cli", "split-pane", flag, "--percent", str(clamp_percent(percent))]
        if cwd:
            args.extend(["--cwd", cwd])
        argv = command_argv(command)
        if argv:
            args.append("--")
            args.extend(argv)

        proc = self._run_checked("split pane", args)
        return (proc.stdout or "").strip()

    def close_pane(self, pane_id: str) -> None:
        self._run_quiet("closePane", ["cli", "kill-pane", "--pane-id", str(pane_id)])

    def send_keys(self, pane_id: str, text: str) -> None:
        # --no-paste delivers the text as typed input rather than a bracketed paste.
        self._run_checked(
            "send text", ["cli", "send-text", "--pane-id", str(pane_id), "--no-paste", text]
        )

    def list_panes(self) -> list[PaneInfo]:
        try:
            proc = self._run(["cli", "list", "--format", "json"])
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"[wezterm] cli list failed: {e}")
            return []
        if proc.returncode != 0:
            return []
        try:
            payload = json.loads(proc.stdout or "[]")
        except json.JSONDecodeError:
            return []
        if not isinstance(payload, list):
            return []
        panes = []
        for item in payload:
            if isinstance(item, dict):
                info = _pane_from_json(item)
                if info is not None:
                    panes.append(info)
        return panes

    def get_pane_info(self, pane_id: str) -> PaneInfo | None:
        for info in self.list_panes():
            if info.pane_id == str(pane_id):
                return info
        return None
