"""Logging for jobgate: console output plus one log file per day.

Every module does ``log = get_logger(__name__)``. The first call installs
the handlers on the root logger; ``LOG_LEVEL`` picks the console level and
``JOBGATE_LOG_DIR`` the file location (empty means console only).
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

_FORMATTER = logging.Formatter(
    "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
_ready = False


def _log_dir() -> Path | None:
    raw = os.environ.get("JOBGATE_LOG_DIR")
    if raw is None:
        home = os.environ.get("JOBGATE_HOME", "").strip()
        return (Path(home) if home else Path.home() / ".jobgate") / "logs"
    return Path(raw).expanduser() if raw.strip() else None


def _file_handler() -> logging.Handler | None:
    directory = _log_dir()
    if directory is None:
        return None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(directory / f"jobgate_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError:
        # Unwritable log dir; the console still gets everything
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(_FORMATTER)
    return handler


def _install() -> None:
    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(_FORMATTER)
    root.addHandler(console)

    file_handler = _file_handler()
    if file_handler is not None:
        root.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    global _ready
    if not _ready:
        _install()
        _ready = True
    return logging.getLogger(name)
