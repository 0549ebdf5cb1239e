"""
Logging helpers.

Library modules only create module loggers; handlers are attached by the
command line entry point through ``setup_logging``. Logs go to a stable
per-user state directory so failed batch runs can be inspected afterwards.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

ENV_LOG_LEVEL = "MESHPARAM_LOG_LEVEL"
ENV_LOG_DIR = "MESHPARAM_LOG_DIR"

_LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOG_ONCE_KEYS: set[str] = set()
_LOG_ONCE_LOCK = threading.Lock()


def default_log_dir() -> Path:
    override = os.environ.get(ENV_LOG_DIR)
    if override:
        return Path(override)

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / "meshparam" / "logs"

    xdg_state_home = os.environ.get("XDG_STATE_HOME")
    if xdg_state_home:
        return Path(xdg_state_home) / "meshparam" / "logs"

    return Path.home() / ".local" / "state" / "meshparam" / "logs"


def parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return int(level)
    value = str(level).strip().upper()
    if not value:
        return logging.INFO
    resolved = getattr(logging, value, None)
    return int(resolved) if isinstance(resolved, int) else logging.INFO


def setup_logging(
    *,
    log_level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    filename: str = "meshparam.log",
    console: bool = False,
) -> Optional[Path]:
    """
    Attach a UTF-8 file handler (and optionally a stderr handler) to the root logger.

    Idempotent: an existing FileHandler is reused and its path returned.
    Returns None when the log directory cannot be created.
    """
    root = logging.getLogger()
    level = parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)

    if console and not any(getattr(h, "_meshparam_console", False) for h in root.handlers):
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        stream_handler._meshparam_console = True  # type: ignore[attr-defined]
        root.addHandler(stream_handler)

    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    root.setLevel(level)

    resolved_dir = Path(log_dir) if log_dir is not None else default_log_dir()
    try:
        resolved_dir.mkdir(parents=True, exist_ok=True)
        log_path = resolved_dir / filename
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
    except OSError:
        return None

    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    root.info("Logging initialized: %s (level=%s)", log_path, logging.getLevelName(level))
    return log_path


def log_once(
    logger: logging.Logger,
    key: str,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    Logs at most once per process for the given key.

    Used for per-row numerical warnings that would otherwise repeat for every
    mesh processed in a batch.
    """
    k = str(key)
    with _LOG_ONCE_LOCK:
        if k in _LOG_ONCE_KEYS:
            return False
        _LOG_ONCE_KEYS.add(k)

    logger.log(level, msg, *args, exc_info=exc_info)
    return True


def reset_log_once() -> None:
    with _LOG_ONCE_LOCK:
        _LOG_ONCE_KEYS.clear()
