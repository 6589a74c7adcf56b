"""Shared hook main(): config, stdin, exit code."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, TextIO

from ..config import PaneKeeperConfig, default_home, get_config_path
from ..logging_config import setup_logger
from .input import HookInput

logger = setup_logger("panekeeper.hooks")

HookHandler = Callable[[HookInput, PaneKeeperConfig, Path], Any]


def run_hook(name: str, handler: HookHandler, stream: TextIO | None = None) -> int:
    """Run ``handler`` for the record on ``stream``. Always returns 0."""
    try:
        home = default_home()
        config = PaneKeeperConfig.load(get_config_path(home))
        if not config.enabled:
            logger.debug(f"{name}: disabled")
            return 0
        hook_input = HookInput.read(stream)
        handler(hook_input, config, home)
    except Exception as e:
        logger.error(f"{name} hook failed: {e}", exc_info=True)
    return 0


def hook_main(name: str, handler: HookHandler) -> None:
    sys.exit(run_hook(name, handler))
