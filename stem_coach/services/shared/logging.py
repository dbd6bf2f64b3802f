"""Logging setup for Stem Coach.

Every module logs under the "stem_coach" namespace (``stem_coach.audio.analyzer``,
``stem_coach.routers.stems`` ...), so one call here controls the whole app.
"""
from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Any, List, Optional

NAMESPACE = "stem_coach"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_level(level: str) -> int:
    name = str(level).upper()
    if name not in _LEVELS:
        raise ValueError(f"Invalid log level: {level!r}. Must be one of {_LEVELS}")
    return getattr(logging, name)


def _build_handlers(
    log_file: Optional[str],
    max_bytes: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        ))
    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """(Re)configure the stem_coach logger tree.

    Args:
        level: "DEBUG" .. "CRITICAL", case-insensitive.
        log_file: Optional rotating log file; parent dirs are created.
        max_bytes: Size at which the log file rotates.
        backup_count: Rotated files to keep.

    Raises:
        ValueError: If level is not a valid log level string.
    """
    numeric = _parse_level(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger(NAMESPACE)
    root.setLevel(numeric)
    root.propagate = False

    # Safe to call repeatedly (app startup, tests, CLI)
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()

    for handler in _build_handlers(log_file, max_bytes, backup_count):
        handler.setLevel(numeric)
        handler.setFormatter(formatter)
        root.addHandler(handler)


def setup_logging_from_config(config: Any) -> None:
    """Apply the ``logging.*`` section of a Config."""
    setup_logging(
        level=config.get("logging.level", "INFO"),
        log_file=config.get("logging.file"),
        max_bytes=int(config.get("logging.max_bytes", 10 * 1024 * 1024)),
        backup_count=int(config.get("logging.backup_count", 5)),
    )


def get_logger(name: str) -> logging.Logger:
    """Return ``stem_coach.<name>``; names already in the namespace pass through."""
    if name.startswith(NAMESPACE):
        return logging.getLogger(name)
    return logging.getLogger(f"{NAMESPACE}.{name}")
