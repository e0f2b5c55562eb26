# src/screencast_tasks/tasks/task_api.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from ..core.ports import TaskRepo
from ..directory.episode_catalog import EpisodeCatalog
from ..directory.user_store import UserStore
from .task_models import ReleaseEpisode, SyncTeamMembers, Task

logger = logging.getLogger(__name__)


def schedule(task_store: TaskRepo, task: Task, at: datetime | None = None) -> None:
    """Persist `task` to run at `at` (default: now). Idempotent per dedupe key."""
    if at is None:
        at = datetime.now(timezone.utc)
    task_store.upsert(at, task)


def schedule_team_sync(task_store: TaskRepo, user_id: UUID, at: datetime | None = None) -> None:
    """
    Convenience helper: reconcile billing seats for `user_id`.

    Repeated calls for one user keep a single pending row (the latest date wins).
    """
    schedule(task_store, SyncTeamMembers(user_id=user_id), at)


def schedule_episode_release(
    task_store: TaskRepo,
    number: int,
    *,
    at: datetime | None = None,
    run_after_minutes: int = 0,
) -> datetime:
    """Schedule a release; returns the date the row was scheduled for."""
    if at is None:
        at = datetime.now(timezone.utc) + timedelta(minutes=max(0, int(run_after_minutes)))
    schedule(task_store, ReleaseEpisode(number=number), at)
    return at


def schedule_upcoming_releases(
    task_store: TaskRepo,
    catalog: EpisodeCatalog,
    now: datetime | None = None,
) -> int:
    """
    Schedule a release task at each future episode's release date.

    Safe to call on every start: release keys include the date, so
    re-scheduling an unchanged date hits the existing row.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    n = 0
    for ep in catalog.upcoming(now):
        schedule(task_store, ReleaseEpisode(number=ep.number), ep.release_at)
        n += 1
    if n:
        logger.info("Scheduled %s upcoming episode release(s)", n)
    return n


def add_team_member(users: UserStore, task_store: TaskRepo, user_id: UUID, team_member_id: UUID) -> bool:
    """Add a team member and queue a seat sync for the team owner."""
    added = users.add_team_member(user_id, team_member_id)
    if added:
        schedule_team_sync(task_store, user_id)
    return added


def remove_team_member(users: UserStore, task_store: TaskRepo, user_id: UUID, team_member_id: UUID) -> bool:
    """Remove a team member and queue a seat sync for the team owner."""
    removed = users.remove_team_member(user_id, team_member_id)
    if removed:
        schedule_team_sync(task_store, user_id)
    return removed
