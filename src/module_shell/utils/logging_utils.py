"""Logging utilities for Module Shell.

Provides log rotation and root-logger setup for the three run modes: the
full-screen shell (file or nothing, never the screen) and the one-shot
subcommands (stderr).
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Tuple, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_MAX_LOG_SIZE = 1_000_000

_HANDLER_MARK = "_module_shell_handler"


def rotate_log_if_needed(
    path: Path,
    max_size: int,
    keep_count: int = 3,
) -> Tuple[bool, Optional[str], Dict[str, Any]]:
    """Rotate the log file when it exceeds `max_size`, keeping at most `keep_count` archives.

    Archives are renamed with numeric suffixes (.1, .2, ...); older archives
    shift up one slot and the oldest is dropped.

    Returns:
        Tuple of (success, error_message, metadata). Metadata holds 'status'
        and, after a rotation, 'rotated_to'.
    """
    metadata: Dict[str, Any] = {"path": str(path), "max_size": max_size, "keep_count": keep_count}

    if keep_count < 1:
        return (False, "keep_count must be >= 1", metadata)

    if not path.exists():
        metadata["status"] = "Log absent; nothing to rotate"
        return (True, None, metadata)

    try:
        current_size = path.stat().st_size
    except OSError as exc:
        return (False, f"Failed to stat log {path}: {exc}", metadata)
    metadata["size"] = current_size
    if current_size <= max_size:
        metadata["status"] = "Log size within threshold"
        return (True, None, metadata)

    try:
        for slot in range(keep_count - 1, 0, -1):
            src = path.parent / f"{path.name}.{slot}"
            dst = path.parent / f"{path.name}.{slot + 1}"
            if src.exists():
                src.replace(dst)
        first_archive = path.parent / f"{path.name}.1"
        path.replace(first_archive)
    except OSError as exc:
        return (False, f"Failed to rotate log {path}: {exc}", metadata)

    metadata["rotated_to"] = str(first_archive)
    metadata["status"] = "Log rotated"
    return (True, None, metadata)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    stream: Optional[TextIO] = None,
    interactive: bool = False,
    max_size: int = DEFAULT_MAX_LOG_SIZE,
) -> logging.Handler:
    """Install the Module Shell handler on the root logger.

    Args:
        level: Log level name or number
        log_file: Log to this file (rotated first when oversized)
        stream: Stream for non-interactive runs (defaults to stderr)
        interactive: Full-screen mode; without a log file, records are dropped
        max_size: Rotation threshold in bytes

    Returns:
        The installed handler. A handler installed by an earlier call is
        replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        ok, error, _ = rotate_log_if_needed(path, max_size)
        if not ok:
            print(f"Warning: {error}", file=sys.stderr)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    elif interactive:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler(stream or sys.stderr)

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_MARK, True)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARK, False):
            root.removeHandler(existing)
            existing.close()
    root.addHandler(handler)
    root.setLevel(level)
    return handler


__all__ = ["rotate_log_if_needed", "configure_logging", "LOG_FORMAT"]
