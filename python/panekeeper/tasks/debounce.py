"""Coalesce bursts of updates into one run with the latest payload.

Hook processes are short-lived, so the caller must :meth:`Debouncer.wait`
before exiting or the pending run is lost with the process.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Generic, Optional, TypeVar

from ..logging_config import setup_logger

logger = setup_logger("panekeeper.tasks.debounce")

T = TypeVar("T")

DEFAULT_DELAY_S = 0.05


class Debouncer(Generic[T]):
    def __init__(self, fn: Callable[[T], Any], delay_s: float = DEFAULT_DELAY_S):
        self._fn = fn
        self.delay_s = delay_s
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[T] = None
        self._has_pending = False
        self._running = False
        self._error: Optional[BaseException] = None
        self.runs = 0
        self.discarded = 0

    def submit(self, payload: T) -> None:
        """Schedule ``payload``; anything submitted earlier in the window is dropped."""
        with self._lock:
            if self._has_pending:
                self.discarded += 1
            self._pending = payload
            self._has_pending = True
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.delay_s, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self) -> None:
        with self._idle:
            if threading.current_thread() is not self._timer:
                return  # superseded by a later submit
            self._idle.wait_for(lambda: not self._running)
            if threading.current_thread() is not self._timer or not self._has_pending:
                return
            payload = self._pending
            self._pending = None
            self._has_pending = False
            self._timer = None
            self._running = True

        try:
            self._fn(payload)  # type: ignore[arg-type]
        except Exception as e:
            logger.error(f"Debounced run failed: {e}")
            with self._lock:
                self._error = e
        finally:
            with self._idle:
                self.runs += 1
                self._running = False
                self._idle.notify_all()

    def pending(self) -> bool:
        with self._lock:
            return self._has_pending or self._running

    def wait(self, timeout: float | None = None) -> bool:
        """Block until nothing is scheduled or running.

        Re-raises the error of a failed run so the caller decides what to do
        with it. Returns False if ``timeout`` elapsed first.
        """
        with self._idle:
            done = self._idle.wait_for(
                lambda: not self._has_pending and not self._running and self._timer is None,
                timeout,
            )
            error, self._error = self._error, None
        if error is not None:
            raise error
        return done

    def cancel(self) -> None:
        with self._idle:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
            self._has_pending = False
            self._idle.notify_all()
