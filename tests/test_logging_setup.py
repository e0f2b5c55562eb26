# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from screencast_tasks.logging_setup import level_from_name, setup_logging


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    httpx_level = logging.getLogger("httpx").level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.captureWarnings(False)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("15", 15), ("chatty", logging.INFO), (None, logging.INFO)],
)
def test_level_from_name(name, expected) -> None:
    assert level_from_name(name) == expected


def test_setup_logging_writes_file_and_filters_console(tmp_path: Path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.INFO)

    root = restore_root_logging
    assert log_file == tmp_path / "logs" / "screencast-tasks.log"
    assert len(root.handlers) == 2
    assert logging.getLogger("httpx").level == logging.WARNING

    console = next(h for h in root.handlers if not isinstance(h, logging.FileHandler))

    def passes(name: str, level: int) -> bool:
        record = logging.LogRecord(name, level, __file__, 1, "msg", None, None)
        return all(f.filter(record) for f in console.filters)

    assert passes("screencast_tasks.tasks.task_scheduler", logging.INFO)
    assert not passes("httpx", logging.INFO)
    assert passes("httpx", logging.WARNING)
    assert not passes("aiosqlite", logging.WARNING)
    assert passes("aiosqlite", logging.ERROR)

    logging.getLogger("screencast_tasks.test").debug("debug line for the file")
    for h in root.handlers:
        h.flush()
    assert "debug line for the file" in log_file.read_text(encoding="utf-8")
