# src/screencast_tasks/tasks/task_executor.py

from __future__ import annotations

"""
Task executor.

Interprets one task by calling the external services it needs and returns a
verdict: True means the stored row can be deleted, False means keep it for
the next poll.

Verdict rules:
- stale references (unknown user / unknown episode) -> True, nothing to do
- any collaborator failure                           -> False, retried later
- otherwise the task-specific success check
"""

import logging
from dataclasses import dataclass

from ..core.errors import CollaboratorError
from ..core.models import Episode
from ..core.ports import (
    BillingService,
    BuildTrigger,
    CampaignService,
    EpisodeCatalog,
    SourceVisibility,
    UserDirectory,
)
from .task_models import ReleaseEpisode, SyncTeamMembers, Task

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskExecutor:
    users: UserDirectory
    billing: BillingService
    episodes: EpisodeCatalog
    visibility: SourceVisibility
    builds: BuildTrigger
    campaigns: CampaignService
    production: bool = False
    seat_add_on_code: str | None = None

    async def execute(self, task: Task) -> bool:
        try:
            if isinstance(task, SyncTeamMembers):
                return await self._sync_team_members(task)
            if isinstance(task, ReleaseEpisode):
                return await self._release_episode(task)
        except CollaboratorError as exc:
            logger.warning("Task %r failed: %s", task, exc)
            return False
        except Exception:
            # Directory lookups hit the database; treat like any other failed call.
            logger.exception("Task %r raised", task)
            return False

        raise TypeError(f"unknown task type: {type(task).__name__}")

    async def _sync_team_members(self, task: SyncTeamMembers) -> bool:
        user = self.users.lookup_user(task.user_id)
        if user is None:
            logger.info("Sync skipped: user %s no longer exists", task.user_id)
            return True

        count = len(self.users.team_members(user))

        subscription = await self.billing.fetch_subscription(user)
        if subscription is None:
            logger.info("Sync skipped: user %s has no subscription", task.user_id)
            return True

        updated = await self.billing.update_seat_count(subscription, count)
        if updated is None:
            return False

        quantity = updated.add_on_quantity(self.seat_add_on_code)
        if quantity != count:
            logger.warning(
                "Seat count mismatch user=%s expected=%s billed=%s", task.user_id, count, quantity
            )
            return False

        logger.info("Synced %s team members for user %s", count, task.user_id)
        return True

    async def _release_episode(self, task: ReleaseEpisode) -> bool:
        episode = self.episodes.lookup_episode(task.number)
        if episode is None:
            logger.info("Release skipped: episode %s not found", task.number)
            return True

        # Publishing steps are fire-and-forget: a failure is logged and the
        # release carries on. Neither step is undone if the mailing fails.
        try:
            await self.visibility.set_visibility(episode.id, private=False)
        except CollaboratorError as exc:
            logger.warning("Making %s public failed: %s", episode.id, exc)

        try:
            await self.builds.trigger_build()
        except CollaboratorError as exc:
            logger.warning("Site build trigger failed: %s", exc)

        if await self.campaigns.campaign_exists(episode):
            logger.info("Campaign for episode %s already exists; not re-sending", episode.number)
            return False

        return await self._send_campaign(episode)

    async def _send_campaign(self, episode: Episode) -> bool:
        campaign_id = await self.campaigns.create_campaign(episode)
        if campaign_id is None:
            return False

        await self.campaigns.add_content(episode, campaign_id)

        if self.production:
            result = await self.campaigns.send_campaign(campaign_id)
        else:
            result = await self.campaigns.test_send(campaign_id)

        logger.info(
            "Campaign %s for episode %s %s (sent=%s)",
            campaign_id,
            episode.number,
            "dispatched" if self.production else "test-sent",
            result is not None,
        )
        return result is not None
