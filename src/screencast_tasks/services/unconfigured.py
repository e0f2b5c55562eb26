# src/screencast_tasks/services/unconfigured.py

from __future__ import annotations

from typing import Any, NoReturn

from ..core.errors import CollaboratorError


class UnconfiguredService:
    """
    Stand-in for a service whose credentials are missing.

    Every call raises CollaboratorError, so tasks that need the service stay
    queued until it is configured instead of the worker refusing to start.
    """

    def __init__(self, service: str, missing: str) -> None:
        self.service = service
        self.missing = missing

    def _fail(self) -> NoReturn:
        raise CollaboratorError(self.service, f"not configured (set {self.missing})")

    async def aclose(self) -> None:
        return None

    # BillingService
    async def fetch_subscription(self, user: Any) -> Any:
        self._fail()

    async def update_seat_count(self, subscription: Any, count: int) -> Any:
        self._fail()

    # SourceVisibility
    async def set_visibility(self, artifact_id: str, *, private: bool) -> None:
        self._fail()

    # BuildTrigger
    async def trigger_build(self) -> None:
        self._fail()

    # CampaignService
    async def campaign_exists(self, episode: Any) -> bool:
        self._fail()

    async def create_campaign(self, episode: Any) -> str | None:
        self._fail()

    async def add_content(self, episode: Any, campaign_id: str) -> None:
        self._fail()

    async def send_campaign(self, campaign_id: str) -> Any:
        self._fail()

    async def test_send(self, campaign_id: str) -> Any:
        self._fail()
