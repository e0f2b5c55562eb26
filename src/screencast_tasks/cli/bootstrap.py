# src/screencast_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores and service clients into AppState,
- falls back to UnconfiguredService where credentials are missing.
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import get_settings
from ..core.state import AppState
from ..directory.episode_catalog import EpisodeCatalog
from ..directory.user_store import UserStore
from ..services.circle import CircleBuildTrigger
from ..services.github import GitHubVisibility
from ..services.mailchimp import MailchimpCampaigns
from ..services.recurly import RecurlyBilling
from ..services.unconfigured import UnconfiguredService
from ..tasks.task_executor import TaskExecutor
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_billing(settings) -> Any:
    if not settings.recurly_api_key:
        return UnconfiguredService("recurly", "SCREENCAST_RECURLY_API_KEY")
    return RecurlyBilling(
        api_key=settings.recurly_api_key,
        base_url=settings.recurly_base_url,
        seat_add_on_code=settings.recurly_team_member_add_on,
        timeout_seconds=settings.http_timeout_seconds,
    )


def build_visibility(settings) -> Any:
    if not settings.github_token or not settings.github_org:
        return UnconfiguredService("github", "SCREENCAST_GITHUB_TOKEN and SCREENCAST_GITHUB_ORG")
    return GitHubVisibility(
        token=settings.github_token,
        org=settings.github_org,
        timeout_seconds=settings.http_timeout_seconds,
    )


def build_builds(settings) -> Any:
    if not settings.circle_api_key or not settings.circle_project_slug:
        return UnconfiguredService("circleci", "SCREENCAST_CIRCLE_API_KEY and SCREENCAST_CIRCLE_PROJECT_SLUG")
    return CircleBuildTrigger(
        api_key=settings.circle_api_key,
        project_slug=settings.circle_project_slug,
        branch=settings.circle_branch,
        timeout_seconds=settings.http_timeout_seconds,
    )


def build_campaigns(settings) -> Any:
    if not settings.mailchimp_api_key or not settings.mailchimp_list_id:
        return UnconfiguredService("mailchimp", "SCREENCAST_MAILCHIMP_API_KEY and SCREENCAST_MAILCHIMP_LIST_ID")
    return MailchimpCampaigns(
        api_key=settings.mailchimp_api_key,
        list_id=settings.mailchimp_list_id,
        from_name=settings.mailchimp_from_name,
        reply_to=settings.mailchimp_reply_to,
        site_base_url=settings.site_base_url,
        test_emails=settings.mailchimp_test_emails,
        timeout_seconds=settings.http_timeout_seconds,
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.tasks_db_path)
    users = UserStore(settings.tasks_db_path)
    episodes = EpisodeCatalog.from_json_file(settings.episodes_path)

    billing = build_billing(settings)
    visibility = build_visibility(settings)
    builds = build_builds(settings)
    campaigns = build_campaigns(settings)

    for svc in (billing, visibility, builds, campaigns):
        if isinstance(svc, UnconfiguredService):
            logger.warning("%s is not configured (set %s); its tasks will stay queued", svc.service, svc.missing)

    executor = TaskExecutor(
        users=users,
        billing=billing,
        episodes=episodes,
        visibility=visibility,
        builds=builds,
        campaigns=campaigns,
        production=bool(settings.production),
        seat_add_on_code=settings.recurly_team_member_add_on,
    )

    return AppState(
        settings=settings,
        task_store=task_store,
        users=users,
        episodes=episodes,
        executor=executor,
        closeables=[billing, visibility, builds, campaigns],
    )
