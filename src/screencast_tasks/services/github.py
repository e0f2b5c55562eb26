# src/screencast_tasks/services/github.py

from __future__ import annotations

import logging

import httpx

from .http import HttpLoader

logger = logging.getLogger(__name__)


class GitHubVisibility:
    """SourceVisibility backed by the GitHub REST API (one repository per episode)."""

    def __init__(
        self,
        *,
        token: str,
        org: str,
        base_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.org = org
        self._http = HttpLoader(
            "github",
            base_url=base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def set_visibility(self, artifact_id: str, *, private: bool) -> None:
        await self._http.load("PATCH", f"/repos/{self.org}/{artifact_id}", json_body={"private": private})
        logger.info("Repository %s/%s is now %s", self.org, artifact_id, "private" if private else "public")
