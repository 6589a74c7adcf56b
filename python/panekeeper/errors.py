"""Exception types raised inside panekeeper.

Expected absence (no multiplexer found, no matching pane) is reported with
``None`` by the functions that look things up. These exceptions are reserved
for operations that cannot proceed.
"""

from __future__ import annotations

from typing import Sequence


class PaneKeeperError(Exception):
    """Base class for all panekeeper failures."""


class NoMultiplexerError(PaneKeeperError):
    """An operation needs a pane but no terminal multiplexer was detected."""

    def __init__(self, message: str = "No terminal multiplexer detected"):
        super().__init__(message)


class MultiplexerCommandError(PaneKeeperError):
    """A multiplexer CLI exited non-zero."""

    def __init__(
        self,
        action: str,
        stderr: str,
        *,
        returncode: int | None = None,
        args: Sequence[str] = (),
    ):
        self.action = action
        self.stderr = (stderr or "").strip() or "Unknown error"
        self.returncode = returncode
        self.command = list(args)
        super().__init__(f"Failed to {action}: {self.stderr}")


class LockTimeoutError(PaneKeeperError):
    """The registry lock could not be acquired before the timeout."""

    def __init__(self, path: str, timeout: float):
        self.path = path
        self.timeout = timeout
        super().__init__(f"Failed to acquire lock {path} within {timeout:.1f}s")
