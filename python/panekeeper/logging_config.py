"""
panekeeper logging configuration

Hooks run inside the agent host and must never write to stdout, so everything
goes to a single rotating log file. Level and directory come from environment
variables.
"""

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


_LOG_DIR_CACHE: tuple[str | None, Path] | None = None
PRIMARY_LOG_FILENAME = "panekeeper.log"


def get_log_level() -> int:
    """
    Get log level from environment variable or default to INFO.

    Environment variable: PANEKEEPER_LOG_LEVEL
    Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    level_name = os.getenv("PANEKEEPER_LOG_LEVEL", "INFO").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_map.get(level_name, logging.INFO)


def _can_write_files(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe = directory / f".write_probe_{os.getpid()}_{os.urandom(4).hex()}"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return True
    except OSError:
        return False


def get_log_directory() -> Path:
    """
    Get the log directory path.

    Default: ~/.panekeeper/logs/
    Can be overridden with PANEKEEPER_LOG_DIR environment variable.
    """
    global _LOG_DIR_CACHE

    log_dir_str = os.getenv("PANEKEEPER_LOG_DIR")
    if _LOG_DIR_CACHE is not None and _LOG_DIR_CACHE[0] == log_dir_str:
        return _LOG_DIR_CACHE[1]

    candidates: list[Path] = []
    if log_dir_str:
        candidates.append(Path(log_dir_str).expanduser())
    else:
        candidates.append(Path.home() / ".panekeeper" / "logs")

    # Fallback for restricted environments (e.g., sandboxed runners).
    candidates.append(Path(tempfile.gettempdir()) / "panekeeper-logs")

    for candidate in candidates:
        if _can_write_files(candidate):
            _LOG_DIR_CACHE = (log_dir_str, candidate)
            return candidate

    # Nothing writable; setup_logger reports the failure on stderr.
    _LOG_DIR_CACHE = (log_dir_str, candidates[0])
    return candidates[0]


def get_primary_log_path() -> Path:
    """Get canonical log file path (~/.panekeeper/logs/panekeeper.log by default)."""
    return get_log_directory() / PRIMARY_LOG_FILENAME


def setup_logger(
    name: str,
    log_file: Optional[str] = PRIMARY_LOG_FILENAME,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    console_output: bool = False,
) -> logging.Logger:
    """
    Set up a logger with file rotation and optional console output.

    Args:
        name: Logger name (e.g., 'panekeeper.panes', 'panekeeper.tasks')
        log_file: Log filename hint. Only `panekeeper.log` is persisted to file.
        max_bytes: Maximum size of the log file before rotation (default: 5MB)
        console_output: Whether to also output to stderr (default: False)

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logger('panekeeper.hooks')
        >>> logger.info("Hook started")
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        # Keep logger level in sync with env var, but avoid duplicating handlers.
        logger.setLevel(get_log_level())
        return logger

    logger.setLevel(get_log_level())
    logger.propagate = False

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_file and log_file == PRIMARY_LOG_FILENAME:
        try:
            file_handler = RotatingFileHandler(
                get_primary_log_path(), maxBytes=max_bytes, backupCount=1, encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Failed to set up file logging: {e}", file=sys.stderr)

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(get_log_level())
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger

