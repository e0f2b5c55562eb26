# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from screencast_tasks.core.models import Episode
from screencast_tasks.tasks.task_executor import TaskExecutor
from screencast_tasks.tasks.task_store import TaskStore

from .fakes import FakeCatalog, FakeServices, FakeUserDirectory


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="screencast-tasks-test",
        log_level="DEBUG",
        production=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        episodes_path=tmp_path / "episodes.json",
        poll_interval_seconds=0.01,
        poll_leeway_seconds=0.01,
        http_timeout_seconds=1.0,
        recurly_api_key=None,
        recurly_base_url="https://recurly.test",
        recurly_team_member_add_on="team_members",
        github_token=None,
        github_org="",
        circle_api_key=None,
        circle_project_slug="",
        circle_branch="master",
        mailchimp_api_key=None,
        mailchimp_list_id="",
        mailchimp_from_name="Screencasts",
        mailchimp_reply_to="hello@example.com",
        mailchimp_test_emails=[],
        site_base_url="https://example.com",
    )


@pytest.fixture()
def task_store(tmp_path: Path) -> TaskStore:
    # Real SQLite: store semantics are part of what we test.
    return TaskStore(tmp_path / "tasks.sqlite3")


@pytest.fixture()
def episode() -> Episode:
    return Episode(
        number=5,
        id="episode-005-networking",
        title="Networking",
        synopsis="Loading data from the network.",
        release_at=datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture()
def users() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture()
def catalog(episode: Episode) -> FakeCatalog:
    return FakeCatalog({episode.number: episode})


@pytest.fixture()
def services() -> FakeServices:
    return FakeServices()


@pytest.fixture()
def executor(users: FakeUserDirectory, catalog: FakeCatalog, services: FakeServices) -> TaskExecutor:
    return TaskExecutor(
        users=users,
        billing=services,
        episodes=catalog,
        visibility=services,
        builds=services,
        campaigns=services,
        production=True,
        seat_add_on_code="team_members",
    )
