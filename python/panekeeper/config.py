"""Configuration for panekeeper.

Settings live in ``<home>/config.yaml`` and are merged over defaults. A handful
of environment variables override the file so a single agent session can tweak
behaviour without editing it.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .logging_config import setup_logger

logger = setup_logger("panekeeper.config")

CONFIG_FILENAME = "config.yaml"

VALID_MULTIPLEXERS = ("auto", "wezterm", "zellij", "tmux")
VALID_DIRECTIONS = ("right", "left", "bottom", "top", "down")

MIN_PERCENT = 10
MAX_PERCENT = 90
MAX_AUTOCLOSE_SECONDS = 3600

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}

MAX_DEBOUNCE_MS = 10_000
MAX_RETENTION_DAYS = 3650

PERCENT_FIELDS = ("percent", "task_percent")
INT_BOUNDS = {
    "auto_close_timeout": (0, MAX_AUTOCLOSE_SECONDS),
    "debounce_ms": (0, MAX_DEBOUNCE_MS),
    "log_retention_days": (0, MAX_RETENTION_DAYS),
}
_CHOICES = {
    "multiplexer": VALID_MULTIPLEXERS,
    "direction": VALID_DIRECTIONS,
    "task_direction": VALID_DIRECTIONS,
}


def default_home() -> Path:
    """Root directory for config and state (``PANEKEEPER_HOME`` or ~/.panekeeper)."""
    # Compute at call time so tests that monkeypatch HOME behave correctly.
    raw = (os.environ.get("PANEKEEPER_HOME") or "").strip()
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".panekeeper"


def get_config_path(home: Path | None = None) -> Path:
    return (home or default_home()) / CONFIG_FILENAME


def validate_int_env(value: str | None, *, minimum: int, maximum: int | None) -> tuple[bool, Any]:
    """Validate a numeric override.

    Returns ``(True, parsed)`` on success or ``(False, reason)``.
    """
    if value is None:
        return False, "not set"
    try:
        parsed = int(str(value).strip(), 10)
    except ValueError:
        return False, "must be a number"
    if parsed < minimum:
        return False, f"must be >= {minimum}"
    if maximum is not None and parsed > maximum:
        return False, f"must be <= {maximum}"
    return True, parsed


@dataclass
class PaneKeeperConfig:
    """Effective configuration (defaults, then config.yaml, then environment)."""

    enabled: bool = True
    multiplexer: str = "auto"

    # Agent progress panes (one per correlation key)
    direction: str = "right"
    percent: int = 40
    auto_close_timeout: int = 0  # seconds, 0 = manual close
    agent_monitor: str = "panekeeper-agent-monitor"

    # Task progress pane (one pane, many sessions)
    task_monitor: str = "panekeeper-task-monitor"
    task_direction: str = "right"
    task_percent: int = 25
    auto_spawn: bool = True
    auto_hide_empty: bool = True
    task_log_persistence: bool = True
    log_retention_days: int = 7
    debounce_ms: int = 50

    command_timeout: Optional[float] = 10.0

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaneKeeperConfig":
        """Build a config from raw values; invalid ones are logged and left at the default."""
        config = cls()
        for name in cls.field_names():
            if name not in data:
                continue
            ok, result = validate_value(name, data[name])
            if ok:
                setattr(config, name, result)
            else:
                logger.warning(f"Invalid config value {name}={data[name]!r}: {result}")
        return config

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> "PaneKeeperConfig":
        """Load config.yaml (missing or corrupt file means defaults) and apply env overrides."""
        config_path = path or get_config_path()
        data: dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
                if isinstance(loaded, dict):
                    data = loaded
                elif loaded is not None:
                    logger.warning(f"Ignoring {config_path}: expected a mapping")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to read {config_path}: {e}")

        config = cls.from_dict(data)
        config.apply_env_overrides(os.environ if environ is None else environ)
        return config

    def save(self, path: Path | None = None) -> Path:
        config_path = path or get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
        os.chmod(config_path, 0o600)
        return config_path

    def apply_env_overrides(self, environ: Mapping[str, str]) -> None:
        if (environ.get("PANEKEEPER_DISABLE") or "").strip().lower() in _TRUTHY:
            self.enabled = False

        mux = (environ.get("PANEKEEPER_MULTIPLEXER") or "").strip().lower()
        if mux:
            if mux in VALID_MULTIPLEXERS:
                self.multiplexer = mux
            else:
                logger.warning(f"Invalid PANEKEEPER_MULTIPLEXER={mux!r}: keeping {self.multiplexer}")

        direction = (environ.get("PANEKEEPER_DIRECTION") or "").strip().lower()
        if direction:
            if direction in VALID_DIRECTIONS:
                self.direction = direction
                self.task_direction = direction
            else:
                logger.warning(f"Invalid PANEKEEPER_DIRECTION={direction!r}: keeping {self.direction}")

        raw_percent = environ.get("PANEKEEPER_PERCENT")
        if raw_percent is not None:
            ok, result = validate_int_env(raw_percent, minimum=MIN_PERCENT, maximum=MAX_PERCENT)
            if ok:
                self.percent = result
            else:
                logger.warning(f"Invalid PANEKEEPER_PERCENT: {result}")

        raw_autoclose = environ.get("PANEKEEPER_AUTOCLOSE")
        if raw_autoclose is not None:
            ok, result = validate_int_env(raw_autoclose, minimum=0, maximum=MAX_AUTOCLOSE_SECONDS)
            if ok:
                self.auto_close_timeout = result
            else:
                logger.warning(f"Invalid PANEKEEPER_AUTOCLOSE: {result}")


def validate_value(name: str, value: Any) -> tuple[bool, Any]:
    """Check one config value against the type of its default.

    Returns ``(True, normalized)`` on success or ``(False, reason)``.
    Percentages are clamped into range rather than rejected.
    """
    default = getattr(PaneKeeperConfig, name)

    if name in _CHOICES:
        normalized = str(value).strip().lower() if isinstance(value, str) else None
        if normalized not in _CHOICES[name]:
            return False, f"must be one of {', '.join(_CHOICES[name])}"
        return True, normalized

    if isinstance(default, bool):
        if isinstance(value, bool):
            return True, value
        if isinstance(value, str) and value.strip().lower() in _TRUTHY | _FALSY:
            return True, value.strip().lower() in _TRUTHY
        return False, "must be true or false"

    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            return False, "must be a whole number"
        if name in PERCENT_FIELDS:
            try:
                return True, max(MIN_PERCENT, min(MAX_PERCENT, int(value)))
            except ValueError:
                return False, "must be a whole number"
        minimum, maximum = INT_BOUNDS.get(name, (0, None))
        return validate_int_env(str(value), minimum=minimum, maximum=maximum)

    if name == "command_timeout":
        if value is None:
            return True, None
        if isinstance(value, bool):
            return False, "must be a number of seconds or null"
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            return False, "must be a number of seconds or null"
        if seconds <= 0:
            return False, "must be > 0"
        return True, seconds

    if not isinstance(value, str) or not value.strip():
        return False, "must be a non-empty string"
    return True, value.strip()


def get_config_value(key: str, default: Any = None, *, path: Path | None = None) -> Any:  # noqa: ANN401
    return PaneKeeperConfig.load(path, environ={}).to_dict().get(key, default)


def set_config_value(key: str, raw_value: str, *, path: Path | None = None) -> PaneKeeperConfig:
    """Persist a single key. Raises KeyError for unknown keys, ValueError for bad values."""
    if key not in PaneKeeperConfig.field_names():
        raise KeyError(key)
    config = PaneKeeperConfig.load(path, environ={})
    value: Any = raw_value
    if key == "command_timeout" and raw_value.strip().lower() in {"", "none", "null"}:
        value = None
    ok, result = validate_value(key, value)
    if not ok:
        raise ValueError(f"{key} {result}")
    setattr(config, key, result)
    config.save(path)
    return config


def reset_config(path: Path | None = None) -> PaneKeeperConfig:
    config = PaneKeeperConfig()
    config.save(path)
    return config
