"""
Multiplexer Adapter base

Every backend exposes the same small vocabulary: availability check, split,
close, send text and a liveness query. Subclasses only translate that
vocabulary into their CLI's argument syntax.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from ..errors import MultiplexerCommandError
from ..logging_config import setup_logger

logger = setup_logger("panekeeper.adapters")

SIDE_BY_SIDE = "side_by_side"
STACKED = "stacked"

_STACKED_DIRECTIONS = {"bottom", "top", "down"}

MIN_PERCENT = 10
MAX_PERCENT = 90

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


@dataclass(frozen=True)
class PaneInfo:
    pane_id: str
    width: int | None = None
    height: int | None = None
    current_command: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


def normalize_direction(direction: str | None) -> str:
    """Map right/left to a side-by-side split and bottom/top/down to a stacked one."""
    if (direction or "").strip().lower() in _STACKED_DIRECTIONS:
        return STACKED
    return SIDE_BY_SIDE


def clamp_percent(percent: Any) -> int:
    try:
        value = int(percent)
    except (TypeError, ValueError):
        value = 40
    return max(MIN_PERCENT, min(MAX_PERCENT, value))


def command_argv(command: str | Sequence[str] | None) -> list[str]:
    if command is None:
        return []
    if isinstance(command, str):
        return [command]
    return [str(part) for part in command]


class MultiplexerAdapter:
    """Base class for terminal multiplexer backends."""

    name: str = ""
    executable: str = ""
    env_markers: tuple[str, ...] = ()

    # Whether get_pane_info can ever confirm a pane is alive.
    supports_pane_info: bool = True

    # Whether close/send can address a pane by handle (False means "focused pane").
    addressable: bool = True

    def __init__(
        self,
        *,
        environ: Optional[Mapping[str, str]] = None,
        run: Optional[Runner] = None,
        which: Optional[Callable[[str], Optional[str]]] = None,
        timeout_s: float | None = None,
    ):
        self._environ = environ
        self._run_fn = run or subprocess.run
        self._which = which or shutil.which
        self.timeout_s = timeout_s

    @property
    def environ(self) -> Mapping[str, str]:
        # Resolved lazily so monkeypatched os.environ is honoured.
        return os.environ if self._environ is None else self._environ

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"

    # ------------------------------------------------------------------ #
    # Detection                                                            #
    # ------------------------------------------------------------------ #

    def in_session(self) -> bool:
        """Whether the current process runs inside this multiplexer (env markers only)."""
        return any(self.environ.get(marker) for marker in self.env_markers)

    def cli_available(self) -> bool:
        try:
            return self._which(self.executable) is not None
        except OSError:
            return False

    def is_available(self) -> bool:
        """Environment marker first, executable on PATH second. Never raises."""
        if self.in_session():
            return True
        return self.cli_available()

    # ------------------------------------------------------------------ #
    # Subprocess plumbing                                                  #
    # ------------------------------------------------------------------ #

    def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        # Always capture so CLI noise never leaks into the hook's stdout.
        kwargs: dict[str, object] = {
            "text": True,
            "capture_output": True,
            "check": False,
        }
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s
        return self._run_fn([self.executable, *args], **kwargs)  # type: ignore[arg-type]

    def _run_checked(self, action: str, args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        """Run a CLI call that must succeed; raise MultiplexerCommandError otherwise."""
        full = [self.executable, *args]
        try:
            proc = self._run(args)
        except (OSError, subprocess.SubprocessError) as e:
            raise MultiplexerCommandError(action, str(e), args=full) from e
        if proc.returncode != 0:
            raise MultiplexerCommandError(
                action,
                proc.stderr or proc.stdout or "",
                returncode=proc.returncode,
                args=full,
            )
        return proc

    def _run_quiet(self, action: str, args: Sequence[str]) -> bool:
        """Run a best-effort CLI call; failures are logged and reported as False."""
        try:
            proc = self._run(args)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"[{self.name}] {action} failed: {e}")
            return False
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            logger.warning(f"[{self.name}] {action} warning: {detail or f'exit {proc.returncode}'}")
            return False
        return True

    # ------------------------------------------------------------------ #
    # Pane operations                                                      #
    # ------------------------------------------------------------------ #

    def split_pane(
        self,
        direction: str = "right",
        percent: int = 40,
        command: str | Sequence[str] | None = None,
        cwd: str | None = None,
        name: str | None = None,
    ) -> str:
        """Split the current pane and run ``command`` in the new one, without focusing it."""
        raise NotImplementedError

    def close_pane(self, pane_id: str) -> None:
        raise NotImplementedError

    def send_keys(self, pane_id: str, text: str) -> None:
        raise NotImplementedError

    def get_pane_info(self, pane_id: str) -> PaneInfo | None:
        """Return pane metadata, or None when liveness cannot be confirmed."""
        raise NotImplementedError

    def list_panes(self) -> list[PaneInfo]:
        return []
