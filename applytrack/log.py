"""Process-wide logging: stderr for humans, a daily file for the record.

stdout belongs to the CLI's JSON output, so nothing here writes to it.

    LOG_LEVEL             root level (default INFO)
    APPLYTRACK_LOG_FILE   0/false/no turns the daily file off
    APPLYTRACK_LOG_DIR    where daily files go (default ./logs)
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_OFF = ("0", "false", "no")
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Named logger; the first call in a process installs the root handlers."""
    global _configured
    if not _configured:
        _install()
        _configured = True
    return logging.getLogger(name)


def log_file_for(directory: Path, day: date) -> Path:
    return directory / f"applytrack_{day.isoformat()}.log"


def build_handlers(level: int, log_dir: Path | None, day: date | None = None) -> list[logging.Handler]:
    """A stderr handler at *level*, plus a DEBUG file handler when *log_dir* is given and writable."""
    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if log_dir is None:
        return handlers
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file_for(log_dir, day or date.today()), encoding="utf-8")
    except OSError:
        # A read-only checkout still gets console logging.
        return handlers
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    handlers.append(fh)
    return handlers


def _install() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    log_dir = None
    if os.environ.get("APPLYTRACK_LOG_FILE", "1").lower() not in _OFF:
        log_dir = Path(os.environ.get("APPLYTRACK_LOG_DIR") or "logs")
    for handler in build_handlers(level, log_dir):
        root.addHandler(handler)
