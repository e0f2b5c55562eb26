# src/screencast_tasks/services/mailchimp.py

from __future__ import annotations

import html
import logging
from typing import Any

import httpx

from ..core.models import Episode
from .http import HttpLoader

logger = logging.getLogger(__name__)


def campaign_title(episode: Episode) -> str:
    """Internal campaign title; also what campaign_exists searches for."""
    return f"Episode {episode.number}: {episode.title}"


def episode_url(site_base_url: str, episode: Episode) -> str:
    return f"{site_base_url.rstrip('/')}/episodes/{episode.id}"


def render_episode_html(episode: Episode, site_base_url: str) -> str:
    url = html.escape(episode_url(site_base_url, episode), quote=True)
    title = html.escape(episode.title)
    synopsis = html.escape(episode.synopsis)
    return (
        f"<h1>{title}</h1>\n"
        f"<p>{synopsis}</p>\n"
        f'<p><a href="{url}">Watch episode {episode.number}</a></p>\n'
    )


def _datacenter(api_key: str) -> str:
    # Keys look like "<hex>-us6"; the suffix names the API host.
    _, _, dc = api_key.rpartition("-")
    return dc or "us1"


class MailchimpCampaigns:
    """CampaignService backed by the Mailchimp Marketing API (v3)."""

    def __init__(
        self,
        *,
        api_key: str,
        list_id: str,
        from_name: str,
        reply_to: str,
        site_base_url: str,
        test_emails: list[str] | None = None,
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.list_id = list_id
        self.from_name = from_name
        self.reply_to = reply_to
        self.site_base_url = site_base_url
        self.test_emails = list(test_emails or [])
        self._http = HttpLoader(
            "mailchimp",
            base_url=base_url or f"https://{_datacenter(api_key)}.api.mailchimp.com/3.0",
            auth=("screencast", api_key),
            timeout_seconds=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def campaign_exists(self, episode: Episode) -> bool:
        title = campaign_title(episode)
        body = await self._http.load("GET", "/search-campaigns", params={"query": title})
        results = (body or {}).get("results") or []
        for item in results:
            campaign = (item or {}).get("campaign") or {}
            if (campaign.get("settings") or {}).get("title") == title:
                return True
        return False

    async def create_campaign(self, episode: Episode) -> str | None:
        body = await self._http.load(
            "POST",
            "/campaigns",
            json_body={
                "type": "regular",
                "recipients": {"list_id": self.list_id},
                "settings": {
                    "subject_line": f"New episode: {episode.title}",
                    "title": campaign_title(episode),
                    "from_name": self.from_name,
                    "reply_to": self.reply_to,
                },
            },
        )
        campaign_id = (body or {}).get("id")
        if not campaign_id:
            logger.warning("Mailchimp returned no campaign id for episode %s", episode.number)
            return None
        logger.info("Created campaign %s for episode %s", campaign_id, episode.number)
        return str(campaign_id)

    async def add_content(self, episode: Episode, campaign_id: str) -> None:
        await self._http.load(
            "PUT",
            f"/campaigns/{campaign_id}/content",
            json_body={"html": render_episode_html(episode, self.site_base_url)},
        )

    async def send_campaign(self, campaign_id: str) -> Any | None:
        # 204 on success; the acknowledgement is ours.
        await self._http.load("POST", f"/campaigns/{campaign_id}/actions/send")
        return {"campaign_id": campaign_id, "action": "send"}

    async def test_send(self, campaign_id: str) -> Any | None:
        if not self.test_emails:
            logger.warning("No test addresses configured; campaign %s not test-sent", campaign_id)
            return None
        await self._http.load(
            "POST",
            f"/campaigns/{campaign_id}/actions/test",
            json_body={"test_emails": self.test_emails, "send_type": "html"},
        )
        return {"campaign_id": campaign_id, "action": "test", "recipients": list(self.test_emails)}
