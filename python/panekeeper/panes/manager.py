"""
Pane lifecycle manager

Owns the mapping from task ids / correlation keys to physical panes. Every
mutation of the registry happens under the inter-process lock so parallel
hook invocations (e.g. several Task calls fired at once) never spawn duplicate
panes for the same conversation.

Per correlation key the lifecycle is::

    no entry -> spawned | reused -> stale (pane verified dead) -> purged
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from ..adapters import MultiplexerAdapter, MultiplexerDetector
from ..errors import NoMultiplexerError
from ..logging_config import setup_logger
from ..signals import SignalChannel
from .monitor import AgentMonitorCommand, MonitorCommand
from .registry import PaneEntry, PaneRegistry, RegistryState, utc_now_iso

if TYPE_CHECKING:
    from ..config import PaneKeeperConfig

logger = setup_logger("panekeeper.panes")


@dataclass
class SpawnRequest:
    """Parameters for :meth:`PaneLifecycleManager.get_or_create_pane`."""

    task_id: str | None = None
    correlation_key: str = ""
    agent_type: str = "unknown"
    description: str = ""
    direction: str = "right"
    percent: int = 40
    auto_close_timeout: int = 0
    cwd: str | None = None
    label: str | None = None

    @classmethod
    def for_transcript(cls, transcript_path: str | None, **kwargs) -> "SpawnRequest":
        """Correlate by the transcript's containing directory."""
        raw = (transcript_path or "").strip()
        return cls(correlation_key=os.path.dirname(raw) if raw else "", **kwargs)


class PaneLifecycleManager:
    def __init__(
        self,
        registry: PaneRegistry,
        *,
        adapter: MultiplexerAdapter | None = None,
        detector: MultiplexerDetector | None = None,
        preferred: str | None = "auto",
        monitor: MonitorCommand | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self._adapter = adapter
        self._adapter_resolved = adapter is not None
        self.detector = detector or MultiplexerDetector()
        self.preferred = preferred
        self.monitor: MonitorCommand = monitor or AgentMonitorCommand("panekeeper-agent-monitor")
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: "PaneKeeperConfig",
        root: Path,
        *,
        monitor: MonitorCommand | None = None,
        detector: MultiplexerDetector | None = None,
    ) -> "PaneLifecycleManager":
        """Manager for the registry under ``root`` using the configured backend and timeouts."""
        return cls(
            PaneRegistry(root),
            detector=detector or MultiplexerDetector(timeout_s=config.command_timeout),
            preferred=config.multiplexer,
            monitor=monitor or AgentMonitorCommand(config.agent_monitor),
        )

    # ------------------------------------------------------------------ #
    # Adapter                                                              #
    # ------------------------------------------------------------------ #

    def find_adapter(self) -> Optional[MultiplexerAdapter]:
        """The adapter for this process, or None when no multiplexer exists."""
        if not self._adapter_resolved:
            self._adapter = self.detector.select(self.preferred)
            self._adapter_resolved = True
        return self._adapter

    @property
    def adapter(self) -> MultiplexerAdapter:
        adapter = self.find_adapter()
        if adapter is None:
            raise NoMultiplexerError()
        return adapter

    def is_alive(self, pane_id: str | None) -> bool:
        """True only when the backend positively confirms the pane exists."""
        if not pane_id:
            return False
        return self.adapter.get_pane_info(pane_id) is not None

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    def get_or_create_pane(self, request: SpawnRequest) -> PaneEntry:
        """Reuse the live pane for ``request.correlation_key`` or spawn a new one."""
        adapter = self.adapter

        with self.registry.lock():
            state = self.registry.load()
            logger.debug(
                f"get_or_create_pane task_id={request.task_id} key={request.correlation_key!r} "
                f"tracked={len(state.panes)}"
            )

            changed = False
            if request.correlation_key:
                for key, entry in state.entries_for_key(request.correlation_key):
                    if adapter.get_pane_info(entry.pane_id) is not None:
                        reused = self._reuse(state, entry, request)
                        if request.task_id or changed:
                            self.registry.save(state)
                        logger.info(f"Reusing pane {entry.pane_id} for {request.correlation_key}")
                        return reused
                    logger.info(f"Pane {entry.pane_id} no longer exists, removing {key}")
                    del state.panes[key]
                    changed = True

            entry = self._spawn(adapter, request)
            if request.task_id:
                state.panes[request.task_id] = entry
                changed = True
            if changed:
                self.registry.save(state)
            return entry

    def _reuse(self, state: RegistryState, entry: PaneEntry, request: SpawnRequest) -> PaneEntry:
        updated = PaneEntry(
            pane_id=entry.pane_id,
            signal_file=entry.signal_file,
            transcript_dir=entry.transcript_dir,
            multiplexer=entry.multiplexer,
            agent_type=request.agent_type,
            description=request.description,
            created_at=entry.created_at,
            updated_at=utc_now_iso(),
            last_task_id=request.task_id or entry.last_task_id,
        )
        if request.task_id:
            state.panes[request.task_id] = updated
        return updated

    def _spawn(self, adapter: MultiplexerAdapter, request: SpawnRequest) -> PaneEntry:
        if request.task_id:
            signal_path = self.registry.signal_path(request.task_id)
        else:
            signal_path = self.registry.signal_path(str(int(self.clock() * 1000)))
        signal_path.parent.mkdir(parents=True, exist_ok=True)

        command = self.monitor(request, signal_path)
        pane_id = adapter.split_pane(
            direction=request.direction,
            percent=request.percent,
            command=command,
            cwd=request.cwd,
            name=request.label,
        )
        logger.info(f"Spawned {adapter.name} pane {pane_id} for task_id={request.task_id}")

        return PaneEntry(
            pane_id=pane_id,
            signal_file=str(signal_path),
            transcript_dir=request.correlation_key,
            multiplexer=adapter.name,
            agent_type=request.agent_type,
            description=request.description,
            created_at=utc_now_iso(),
        )

    def cleanup(self) -> int:
        """Drop every entry whose pane is not confirmed alive. Returns the number removed."""
        adapter = self.adapter
        with self.registry.lock():
            state = self.registry.load()
            dead = [
                key
                for key, entry in state.panes.items()
                if adapter.get_pane_info(entry.pane_id) is None
            ]
            for key in dead:
                del state.panes[key]
            if dead:
                self.registry.save(state)
                logger.info(f"Cleaned up {len(dead)} stale pane entries")
            return len(dead)

    def close_pane(self, pane_id: str) -> int:
        """Close a pane and forget every task id that referenced it."""
        self.adapter.close_pane(pane_id)
        with self.registry.lock():
            state = self.registry.load()
            keys = state.entries_for_pane(pane_id)
            for key in keys:
                del state.panes[key]
            self.registry.save(state)
            return len(keys)

    def send_message(self, pane_id: str, message: str) -> None:
        self.adapter.send_keys(pane_id, f"{message}\n")

    def complete_task(self, task_id: str, error: str | None = None) -> bool:
        """Tell the task's monitor it finished and drop its registry entry.

        Returns False when nothing is tracked for ``task_id``. Does not need a
        multiplexer: only the signal file and the registry are touched.
        """
        with self.registry.lock():
            state = self.registry.load()
            entry = state.panes.get(task_id)
            if entry is None or not entry.signal_file:
                return False

            channel = SignalChannel(entry.signal_file)
            if error is not None:
                channel.signal_error(error)
            else:
                channel.signal_done()

            del state.panes[task_id]
            self.registry.save(state)
            return True
