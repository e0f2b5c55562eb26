# src/screencast_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time; a missing credential only fails the
  service call that needs it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "SCREENCAST"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Execution mode ----
    # production: real campaign sends; otherwise campaigns are test-sent.
    production: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    episodes_path: Path

    # ---- Scheduler ----
    poll_interval_seconds: float
    poll_leeway_seconds: float
    http_timeout_seconds: float

    # ---- Recurly ----
    recurly_api_key: Optional[str]
    recurly_base_url: str
    recurly_team_member_add_on: str

    # ---- GitHub ----
    github_token: Optional[str]
    github_org: str

    # ---- CircleCI ----
    circle_api_key: Optional[str]
    circle_project_slug: str
    circle_branch: str

    # ---- Mailchimp ----
    mailchimp_api_key: Optional[str]
    mailchimp_list_id: str
    mailchimp_from_name: str
    mailchimp_reply_to: str
    mailchimp_test_emails: List[str]
    site_base_url: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "screencast-tasks")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Accept a generic ENVIRONMENT=production as well.
        production = _env_bool(_k("PRODUCTION"), _env("ENVIRONMENT", "").strip().lower() == "production")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/screencast"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        episodes_path = _env_path(_k("EPISODES_PATH"), data_dir / "episodes.json")

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 10.0)
        poll_leeway_seconds = _env_float(_k("POLL_LEEWAY_SECONDS"), 1.0)
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0)

        recurly_api_key = _first_env(_k("RECURLY_API_KEY"), "RECURLY_API_KEY", default=None)
        recurly_base_url = _env(_k("RECURLY_BASE_URL"), "https://v3.recurly.com")
        recurly_team_member_add_on = _env(_k("RECURLY_TEAM_MEMBER_ADD_ON"), "team_members")

        github_token = _first_env(_k("GITHUB_TOKEN"), "GITHUB_TOKEN", default=None)
        github_org = _env(_k("GITHUB_ORG"), "")

        circle_api_key = _first_env(_k("CIRCLE_API_KEY"), "CIRCLE_TOKEN", default=None)
        circle_project_slug = _env(_k("CIRCLE_PROJECT_SLUG"), "")
        circle_branch = _env(_k("CIRCLE_BRANCH"), "master")

        mailchimp_api_key = _first_env(_k("MAILCHIMP_API_KEY"), "MAILCHIMP_API_KEY", default=None)
        mailchimp_list_id = _env(_k("MAILCHIMP_LIST_ID"), "")
        mailchimp_from_name = _env(_k("MAILCHIMP_FROM_NAME"), app_name)
        mailchimp_reply_to = _env(_k("MAILCHIMP_REPLY_TO"), "")
        mailchimp_test_emails = _env_list(_k("MAILCHIMP_TEST_EMAILS"), [])
        site_base_url = _env(_k("SITE_BASE_URL"), "http://localhost:8765")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            production=production,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            episodes_path=episodes_path,
            poll_interval_seconds=poll_interval_seconds,
            poll_leeway_seconds=poll_leeway_seconds,
            http_timeout_seconds=http_timeout_seconds,
            recurly_api_key=recurly_api_key,
            recurly_base_url=recurly_base_url,
            recurly_team_member_add_on=recurly_team_member_add_on,
            github_token=github_token,
            github_org=github_org,
            circle_api_key=circle_api_key,
            circle_project_slug=circle_project_slug,
            circle_branch=circle_branch,
            mailchimp_api_key=mailchimp_api_key,
            mailchimp_list_id=mailchimp_list_id,
            mailchimp_from_name=mailchimp_from_name,
            mailchimp_reply_to=mailchimp_reply_to,
            mailchimp_test_emails=mailchimp_test_emails,
            site_base_url=site_base_url,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
