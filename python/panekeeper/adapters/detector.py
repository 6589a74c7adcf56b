"""Pick the multiplexer backend for the current process.

Phase 1 looks only at environment markers (no subprocess); phase 2 probes each
backend's CLI. Both walk the same fixed priority order. Finding nothing is a
normal outcome and returns None.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from ..logging_config import setup_logger
from .base import MultiplexerAdapter, Runner
from .tmux import TmuxAdapter
from .wezterm import WeztermAdapter
from .zellij import ZellijAdapter

logger = setup_logger("panekeeper.adapters.detector")

PRIORITY = ("wezterm", "zellij", "tmux")

_ADAPTER_CLASSES: dict[str, type[MultiplexerAdapter]] = {
    "wezterm": WeztermAdapter,
    "zellij": ZellijAdapter,
    "tmux": TmuxAdapter,
}


@dataclass(frozen=True)
class SessionDetection:
    multiplexer: str
    session_id: str | None
    pane_id: str | None


class MultiplexerDetector:
    def __init__(
        self,
        adapters: Optional[Mapping[str, MultiplexerAdapter]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        run: Optional[Runner] = None,
        which: Optional[Callable[[str], Optional[str]]] = None,
        timeout_s: float | None = None,
    ):
        self._environ = environ
        if adapters is None:
            adapters = {
                name: cls(environ=environ, run=run, which=which, timeout_s=timeout_s)
                for name, cls in _ADAPTER_CLASSES.items()
            }
        self.adapters: dict[str, MultiplexerAdapter] = dict(adapters)

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def _ordered(self) -> list[MultiplexerAdapter]:
        return [self.adapters[name] for name in PRIORITY if name in self.adapters]

    def detect_session(self) -> SessionDetection | None:
        """Phase 1: which multiplexer session (if any) this process runs inside."""
        env = self.environ
        for adapter in self._ordered():
            if not adapter.in_session():
                continue
            if adapter.name == "wezterm":
                pane = env.get("WEZTERM_PANE")
                return SessionDetection("wezterm", pane, pane)
            if adapter.name == "zellij":
                return SessionDetection(
                    "zellij", env.get("ZELLIJ_SESSION_NAME") or None, env.get("ZELLIJ_PANE_ID")
                )
            if adapter.name == "tmux":
                socket = (env.get("TMUX") or "").split(",")[0] or None
                return SessionDetection("tmux", socket, env.get("TMUX_PANE"))
            return SessionDetection(adapter.name, None, None)
        return None

    def auto_select(self) -> MultiplexerAdapter | None:
        session = self.detect_session()
        if session is not None:
            logger.debug(f"Detected {session.multiplexer} session from environment")
            return self.adapters[session.multiplexer]

        for adapter in self._ordered():
            if adapter.is_available():
                logger.debug(f"Selected {adapter.name} from CLI probe")
                return adapter

        logger.debug("No terminal multiplexer detected")
        return None

    def select(self, preferred: str | None = "auto") -> MultiplexerAdapter | None:
        """Honour a configured override; ``auto`` (or empty) means auto-select."""
        name = (preferred or "auto").strip().lower()
        if name == "auto":
            return self.auto_select()
        adapter = self.get_adapter(name)
        if adapter is None:
            logger.warning(f"Unknown multiplexer override {name!r}")
            return None
        if not adapter.is_available():
            logger.info(f"Configured multiplexer {name} is not available")
            return None
        return adapter

    def get_adapter(self, name: str) -> MultiplexerAdapter | None:
        return self.adapters.get(name)

    def available_names(self) -> list[str]:
        return [adapter.name for adapter in self._ordered() if adapter.is_available()]
