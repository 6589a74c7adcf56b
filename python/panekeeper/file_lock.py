"""Cross-process lock built on an exclusively created marker file.

Hook processes are short-lived and unrelated, so the only primitive they all
share is the filesystem. The marker holds the owner's pid and a per-instance
token; a marker older than ``stale_after`` seconds belongs to a process that
died mid-operation and is reclaimed.
"""

from __future__ import annotations

import os
import time
import uuid
from pathlib import Path

from .errors import LockTimeoutError
from .logging_config import setup_logger

logger = setup_logger("panekeeper.lock")

DEFAULT_TIMEOUT_S = 5.0
DEFAULT_STALE_AFTER_S = 10.0
DEFAULT_RETRY_INTERVAL_S = 0.05


class FileLock:
    """Exclusive ``O_CREAT | O_EXCL`` lock file with stale-lock reclamation.

    Usage::

        with FileLock(state_dir / "panes.lock"):
            ...  # read-modify-write the registry

    The context manager raises :class:`LockTimeoutError` when the lock cannot be
    acquired in time. :meth:`acquire` returns a bool instead.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        timeout: float = DEFAULT_TIMEOUT_S,
        stale_after: float = DEFAULT_STALE_AFTER_S,
        retry_interval: float = DEFAULT_RETRY_INTERVAL_S,
    ):
        self.path = Path(path)
        self.timeout = timeout
        self.stale_after = stale_after
        self.retry_interval = retry_interval
        self._held = False
        self._token = uuid.uuid4().hex

    @property
    def held(self) -> bool:
        return self._held

    def _try_create(self) -> bool:
        try:
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return False
        try:
            os.write(fd, f"{os.getpid()}\n{self._token}".encode("utf-8"))
        finally:
            os.close(fd)
        return True

    def age(self) -> float | None:
        """Seconds since the marker was last written, or None if it is gone."""
        return _age(self.path)

    def is_stale(self) -> bool:
        age = self.age()
        return age is not None and age > self.stale_after

    def _read_marker(self) -> list[str]:
        try:
            return self.path.read_text(encoding="utf-8").split()
        except OSError:
            return []

    def owner_pid(self) -> int | None:
        marker = self._read_marker()
        try:
            return int(marker[0])
        except (IndexError, ValueError):
            return None

    def owns_marker(self) -> bool:
        """True if the marker on disk was written by this lock instance."""
        marker = self._read_marker()
        return len(marker) > 1 and marker[1] == self._token

    def _reclaim_if_stale(self) -> bool:
        if not self.is_stale():
            return False
        # Move the marker aside before judging it, so a fresh marker created
        # since the check above is never deleted.
        aside = self.path.with_name(f"{self.path.name}.{os.getpid()}.{uuid.uuid4().hex}.stale")
        try:
            os.rename(self.path, aside)
        except FileNotFoundError:
            return True
        age = _age(aside)
        if age is not None and age <= self.stale_after:
            self._restore(aside)
            return False
        logger.warning(f"Reclaiming stale lock {self.path} (age={age or 0.0:.1f}s)")
        aside.unlink(missing_ok=True)
        return True

    def _restore(self, aside: Path) -> None:
        try:
            os.link(aside, self.path)
        except FileExistsError:
            logger.warning(f"Lock {self.path} was taken while its previous marker was set aside")
        finally:
            aside.unlink(missing_ok=True)

    def acquire(self, blocking: bool = True) -> bool:
        """Try to take the lock, retrying every ``retry_interval`` until ``timeout``."""
        if self._held:
            return True
        self.path.parent.mkdir(parents=True, exist_ok=True)

        deadline = time.monotonic() + (self.timeout if blocking else 0.0)
        while True:
            if self._try_create():
                self._held = True
                return True
            if self._reclaim_if_stale():
                continue
            if time.monotonic() >= deadline:
                return False
            time.sleep(self.retry_interval)

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        if not self.owns_marker():
            logger.warning(f"Lock {self.path} was reclaimed by another holder; leaving it in place")
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.debug(f"Lock {self.path} already removed on release")

    def __enter__(self) -> "FileLock":
        if not self.acquire():
            raise LockTimeoutError(str(self.path), self.timeout)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def _age(path: Path) -> float | None:
    try:
        return time.time() - path.stat().st_mtime
    except FileNotFoundError:
        return None
