# src/screencast_tasks/services/circle.py

from __future__ import annotations

import logging

import httpx

from .http import HttpLoader

logger = logging.getLogger(__name__)


class CircleBuildTrigger:
    """BuildTrigger that starts a CircleCI pipeline for the main site."""

    def __init__(
        self,
        *,
        api_key: str,
        project_slug: str,
        branch: str = "master",
        base_url: str = "https://circleci.com/api/v2",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.project_slug = project_slug
        self.branch = branch
        self._http = HttpLoader(
            "circleci",
            base_url=base_url,
            headers={"Circle-Token": api_key},
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def trigger_build(self) -> None:
        body = await self._http.load(
            "POST", f"/project/{self.project_slug}/pipeline", json_body={"branch": self.branch}
        )
        number = body.get("number") if isinstance(body, dict) else None
        logger.info("Triggered %s build on %s (pipeline=%s)", self.project_slug, self.branch, number)
