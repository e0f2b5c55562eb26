# tests/test_services.py

from __future__ import annotations

import json
from uuid import UUID

import httpx
import pytest

from screencast_tasks.core.errors import CollaboratorError
from screencast_tasks.core.models import AddOn, Subscription, User
from screencast_tasks.services.circle import CircleBuildTrigger
from screencast_tasks.services.github import GitHubVisibility
from screencast_tasks.services.mailchimp import MailchimpCampaigns, campaign_title, render_episode_html
from screencast_tasks.services.recurly import RecurlyBilling
from screencast_tasks.services.unconfigured import UnconfiguredService

USER = User(id=UUID("3c0c1d0e-5a5b-4b8a-9a77-0d6f3f1e2a11"), email="owner@example.com")


class Recorder:
    """httpx.MockTransport handler that replays canned responses by (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.routes.get((request.method, request.url.path), httpx.Response(404))

    def body(self, i: int) -> dict:
        return json.loads(self.requests[i].content)


def _sub_json(quantity: int) -> dict:
    return {
        "id": "sub-1",
        "state": "active",
        "plan": {"code": "monthly"},
        "add_ons": [{"add_on": {"code": "team_members"}, "quantity": quantity}],
    }


# ---- Recurly ----


@pytest.mark.asyncio
async def test_recurly_fetches_first_active_subscription() -> None:
    rec = Recorder(
        {
            ("GET", "/accounts/code-3C0C1D0E-5A5B-4B8A-9A77-0D6F3F1E2A11/subscriptions"): httpx.Response(
                200, json={"data": [_sub_json(2)]}
            )
        }
    )
    billing = RecurlyBilling(api_key="k", base_url="https://recurly.test", transport=httpx.MockTransport(rec))

    sub = await billing.fetch_subscription(USER)
    await billing.aclose()

    assert sub == Subscription(id="sub-1", state="active", plan_code="monthly", add_ons=(AddOn("team_members", 2),))
    assert rec.requests[0].url.params["state"] == "active"


@pytest.mark.asyncio
async def test_recurly_missing_account_or_subscription_is_none() -> None:
    billing = RecurlyBilling(api_key="k", base_url="https://recurly.test", transport=httpx.MockTransport(Recorder({})))
    assert await billing.fetch_subscription(USER) is None

    path = "/accounts/code-3C0C1D0E-5A5B-4B8A-9A77-0D6F3F1E2A11/subscriptions"
    billing = RecurlyBilling(
        api_key="k",
        base_url="https://recurly.test",
        transport=httpx.MockTransport(Recorder({("GET", path): httpx.Response(200, json={"data": []})})),
    )
    assert await billing.fetch_subscription(USER) is None


@pytest.mark.asyncio
async def test_recurly_update_changes_add_on_and_reads_back() -> None:
    rec = Recorder(
        {
            ("POST", "/subscriptions/sub-1/change"): httpx.Response(201, json={"id": "chg-1"}),
            ("GET", "/subscriptions/sub-1"): httpx.Response(200, json=_sub_json(4)),
        }
    )
    billing = RecurlyBilling(api_key="k", base_url="https://recurly.test", transport=httpx.MockTransport(rec))
    sub = Subscription(id="sub-1", state="active", plan_code="monthly")

    updated = await billing.update_seat_count(sub, 4)

    assert updated is not None and updated.add_on_quantity("team_members") == 4
    assert rec.body(0) == {"timeframe": "now", "add_ons": [{"code": "team_members", "quantity": 4}]}


@pytest.mark.asyncio
async def test_recurly_server_error_raises_collaborator_error() -> None:
    path = "/accounts/code-3C0C1D0E-5A5B-4B8A-9A77-0D6F3F1E2A11/subscriptions"
    billing = RecurlyBilling(
        api_key="k",
        base_url="https://recurly.test",
        transport=httpx.MockTransport(Recorder({("GET", path): httpx.Response(503, text="maintenance")})),
    )
    with pytest.raises(CollaboratorError) as info:
        await billing.fetch_subscription(USER)
    assert info.value.service == "recurly"


@pytest.mark.asyncio
async def test_transport_errors_raise_collaborator_error() -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    github = GitHubVisibility(token="t", org="acme", base_url="https://gh.test", transport=httpx.MockTransport(boom))
    with pytest.raises(CollaboratorError):
        await github.set_visibility("episode-1", private=False)


# ---- GitHub / CircleCI ----


@pytest.mark.asyncio
async def test_github_patches_repository_visibility() -> None:
    rec = Recorder({("PATCH", "/repos/acme/episode-1"): httpx.Response(200, json={"private": False})})
    github = GitHubVisibility(token="t", org="acme", base_url="https://gh.test", transport=httpx.MockTransport(rec))

    await github.set_visibility("episode-1", private=False)

    assert rec.body(0) == {"private": False}
    assert rec.requests[0].headers["Authorization"] == "Bearer t"


@pytest.mark.asyncio
async def test_circle_starts_pipeline_on_branch() -> None:
    rec = Recorder({("POST", "/project/gh/acme/site/pipeline"): httpx.Response(201, json={"number": 12})})
    circle = CircleBuildTrigger(
        api_key="c", project_slug="gh/acme/site", base_url="https://circle.test", transport=httpx.MockTransport(rec)
    )

    await circle.trigger_build()

    assert rec.body(0) == {"branch": "master"}
    assert rec.requests[0].headers["Circle-Token"] == "c"


# ---- Mailchimp ----


def _mailchimp(rec: Recorder, **kw) -> MailchimpCampaigns:
    return MailchimpCampaigns(
        api_key="abc-us6",
        list_id="list-1",
        from_name="Screencasts",
        reply_to="hello@example.com",
        site_base_url="https://example.com",
        base_url="https://mc.test/3.0",
        transport=httpx.MockTransport(rec),
        **kw,
    )


@pytest.mark.asyncio
async def test_mailchimp_campaign_exists_matches_title(episode) -> None:
    title = campaign_title(episode)
    rec = Recorder(
        {
            ("GET", "/3.0/search-campaigns"): httpx.Response(
                200, json={"results": [{"campaign": {"id": "c1", "settings": {"title": title}}}]}
            )
        }
    )
    assert await _mailchimp(rec).campaign_exists(episode) is True

    rec = Recorder(
        {
            ("GET", "/3.0/search-campaigns"): httpx.Response(
                200, json={"results": [{"campaign": {"id": "c1", "settings": {"title": title + " (draft)"}}}]}
            )
        }
    )
    assert await _mailchimp(rec).campaign_exists(episode) is False


@pytest.mark.asyncio
async def test_mailchimp_create_content_and_send(episode) -> None:
    rec = Recorder(
        {
            ("POST", "/3.0/campaigns"): httpx.Response(200, json={"id": "c42"}),
            ("PUT", "/3.0/campaigns/c42/content"): httpx.Response(200, json={}),
            ("POST", "/3.0/campaigns/c42/actions/send"): httpx.Response(204),
        }
    )
    mc = _mailchimp(rec)

    campaign_id = await mc.create_campaign(episode)
    await mc.add_content(episode, campaign_id)
    result = await mc.send_campaign(campaign_id)

    assert campaign_id == "c42"
    assert rec.body(0)["recipients"] == {"list_id": "list-1"}
    assert rec.body(0)["settings"]["title"] == campaign_title(episode)
    assert "Networking" in rec.body(1)["html"]
    assert result is not None


@pytest.mark.asyncio
async def test_mailchimp_test_send_needs_addresses(episode) -> None:
    rec = Recorder({("POST", "/3.0/campaigns/c42/actions/test"): httpx.Response(204)})

    assert await _mailchimp(rec).test_send("c42") is None
    assert rec.requests == []

    result = await _mailchimp(rec, test_emails=["qa@example.com"]).test_send("c42")
    assert result is not None
    assert rec.body(0) == {"test_emails": ["qa@example.com"], "send_type": "html"}


def test_episode_html_is_escaped(episode) -> None:
    from dataclasses import replace

    out = render_episode_html(replace(episode, title="<script>"), "https://example.com/")
    assert "<script>" not in out
    assert 'href="https://example.com/episodes/episode-005-networking"' in out


# ---- Unconfigured ----


@pytest.mark.asyncio
async def test_unconfigured_service_always_fails(episode) -> None:
    svc = UnconfiguredService("mailchimp", "SCREENCAST_MAILCHIMP_API_KEY")
    with pytest.raises(CollaboratorError, match="not configured"):
        await svc.campaign_exists(episode)
    with pytest.raises(CollaboratorError):
        await svc.trigger_build()
