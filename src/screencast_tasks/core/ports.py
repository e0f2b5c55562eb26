# src/screencast_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task executor and scheduler.

The core depends on Protocols instead of concrete implementations.
This keeps storage and external services swappable and makes testing easier.
"""

from datetime import datetime
from typing import Any, Awaitable, Protocol
from uuid import UUID

from .models import Episode, Subscription, TeamMember, User


class UserDirectory(Protocol):
    """Local user lookups (same database as the task table)."""
    def lookup_user(self, user_id: UUID) -> User | None: ...
    def team_members(self, user: User) -> list[TeamMember]: ...


class EpisodeCatalog(Protocol):
    def lookup_episode(self, number: int) -> Episode | None: ...


class BillingService(Protocol):
    """
    Subscription billing.

    None means "no such subscription" (a normal answer, not a failure).
    Failures raise CollaboratorError.
    """

    def fetch_subscription(self, user: User) -> Awaitable[Subscription | None]: ...
    def update_seat_count(self, subscription: Subscription, count: int) -> Awaitable[Subscription | None]: ...


class SourceVisibility(Protocol):
    def set_visibility(self, artifact_id: str, *, private: bool) -> Awaitable[None]: ...


class BuildTrigger(Protocol):
    def trigger_build(self) -> Awaitable[None]: ...


class CampaignService(Protocol):
    """
    Episode announcement mailings.

    send_campaign/test_send return the service's acknowledgement, or None if
    the service did not confirm the dispatch.
    """

    def campaign_exists(self, episode: Episode) -> Awaitable[bool]: ...
    def create_campaign(self, episode: Episode) -> Awaitable[str | None]: ...
    def add_content(self, episode: Episode, campaign_id: str) -> Awaitable[None]: ...
    def send_campaign(self, campaign_id: str) -> Awaitable[Any | None]: ...
    def test_send(self, campaign_id: str) -> Awaitable[Any | None]: ...


class TaskRepo(Protocol):
    # Scheduling API
    def upsert(self, at: datetime, task: Any) -> None: ...

    # Scheduler API
    def due_tasks(self, *, now: datetime | None = None, limit: int | None = None) -> list[Any]: ...
    def delete(self, row: Any) -> None: ...


class TaskRunner(Protocol):
    """Interprets a single task. True means the stored row may be deleted."""
    def execute(self, task: Any) -> Awaitable[bool]: ...
