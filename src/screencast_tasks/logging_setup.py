# src/screencast_tasks/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

# Service clients log one INFO line per request; the worker polls every few seconds.
HTTP_LOGGERS = ("httpx", "httpcore")

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map "debug" / "WARNING" / "15" to a logging level; unknown names give default."""
    if not name:
        return default
    text = str(name).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


class _WorkerConsoleFilter(logging.Filter):
    """Console shows the worker's own records, HTTP warnings, and errors from anything else."""

    def __init__(self, package: str) -> None:
        super().__init__()
        self._package = package

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == self._package or name.startswith(self._package + "."):
            return True
        if name.startswith(HTTP_LOGGERS):
            return record.levelno >= logging.WARNING
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/screencast",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    quiet_loggers: Iterable[str] = HTTP_LOGGERS,
) -> Path:
    """
    Configure the root logger for the task worker and return the log file path.

    The console gets a filtered view for operators; the file under log_dir gets
    every record at file_level. quiet_loggers are capped at WARNING everywhere.
    Call once, before the first log line.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "screencast-tasks.log"

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_WorkerConsoleFilter(__name__.split(".")[0]))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
