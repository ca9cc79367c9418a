"""Logging setup shared by the CLI, the daily job and the Streamlit app.

Console output at ``LOG_LEVEL`` plus a DEBUG-level daily file under
``LOG_DIR`` (turn off with ``LOG_TO_FILE=false``).
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
# HTTP and SQL chatter stays at WARNING unless the app itself is quieter.
_NOISY = ("httpx", "httpcore", "openai", "urllib3", "sqlalchemy.engine")
_configured = False


def _log_dir() -> Path:
    return Path(os.environ.get("LOG_DIR") or Path(__file__).resolve().parent.parent / "logs")


def _resolve_level(name: str | None) -> int:
    name = (name or os.environ.get("LOG_LEVEL") or "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


def _file_logging_enabled() -> bool:
    return os.environ.get("LOG_TO_FILE", "true").strip().lower() in ("1", "true", "yes")


def configure_logging(level: str | None = None) -> None:
    """Install console/file handlers once; later calls only change the level."""
    global _configured
    resolved = _resolve_level(level)

    root = logging.getLogger()
    root.setLevel(resolved)
    for name in _NOISY:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    if _configured or root.handlers:
        for handler in root.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(resolved)
        _configured = True
        return
    _configured = True

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(resolved)
    console.setFormatter(formatter)
    root.addHandler(console)

    if not _file_logging_enabled():
        return
    try:
        log_dir = _log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(
            log_dir / f"skillmatch_{datetime.now().strftime('%Y-%m-%d')}.log", encoding="utf-8",
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        root.addHandler(fh)
    except OSError as exc:
        root.warning("File logging disabled: %s", exc)


def get_logger(name: str) -> logging.Logger:
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
