# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from screencast_tasks.config import Settings


def test_defaults(monkeypatch) -> None:
    for name in ("SCREENCAST_PRODUCTION", "ENVIRONMENT", "SCREENCAST_DATA_DIR", "SCREENCAST_TASKS_DB_PATH"):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()

    assert s.production is False
    assert s.poll_interval_seconds == 10.0
    assert s.poll_leeway_seconds == 1.0
    assert s.tasks_db_path == Path(".local/screencast") / "tasks.sqlite3"


def test_env_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SCREENCAST_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SCREENCAST_PRODUCTION", "yes")
    monkeypatch.setenv("SCREENCAST_POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("SCREENCAST_MAILCHIMP_TEST_EMAILS", "a@example.com, b@example.com")

    s = Settings.from_env()

    assert s.production is True
    assert s.poll_interval_seconds == 2.5
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.mailchimp_test_emails == ["a@example.com", "b@example.com"]


def test_environment_production_and_bad_numbers(monkeypatch) -> None:
    monkeypatch.delenv("SCREENCAST_PRODUCTION", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "Production")
    monkeypatch.setenv("SCREENCAST_POLL_INTERVAL_SECONDS", "soon")

    s = Settings.from_env()

    assert s.production is True
    assert s.poll_interval_seconds == 10.0
