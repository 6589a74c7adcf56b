"""Terminal multiplexer backends and detection."""

from .base import PaneInfo, MultiplexerAdapter, normalize_direction
from .detector import PRIORITY, MultiplexerDetector, SessionDetection
from .tmux import TmuxAdapter
from .wezterm import WeztermAdapter
from .zellij import ZellijAdapter

__all__ = [
    "PRIORITY",
    "MultiplexerAdapter",
    "MultiplexerDetector",
    "PaneInfo",
    "SessionDetection",
    "TmuxAdapter",
    "WeztermAdapter",
    "ZellijAdapter",
    "normalize_direction",
]
